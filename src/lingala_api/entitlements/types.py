"""
lingala_api.entitlements.types

Value types exchanged with the policy engine.

Responsibilities:
- Enumerate namespaces, actions, resource kinds and denial reasons.
- Carry pre-loaded resource facts and the resulting decision.
- Map a denial onto its API error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from lingala_api.errors import ApiError, AuthenticationRequired, Conflict, Forbidden


class Namespace(StrEnum):
    PUBLIC = "public"
    ADMIN = "admin"


class Action(StrEnum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ENROLL = "enroll"
    PUBLISH = "publish"
    REORDER = "reorder"


class ResourceKind(StrEnum):
    COURSE = "course"
    MODULE = "module"
    LESSON = "lesson"
    LESSON_MATERIAL = "lesson_material"
    QUIZ = "quiz"
    QUIZ_QUESTION = "quiz_question"
    USER = "user"
    ENROLLMENT = "enrollment"
    PROGRESS = "progress"
    SUBSCRIPTION = "subscription"
    PAYMENT = "payment"
    ANALYTICS = "analytics"
    # Own profile settings (password, language).
    ACCOUNT = "account"


class DenyReason(StrEnum):
    UNAUTHORIZED = "UNAUTHORIZED"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    SUBSCRIPTION_REQUIRED = "SUBSCRIPTION_REQUIRED"
    NOT_ENROLLED = "NOT_ENROLLED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    FORBIDDEN = "FORBIDDEN"


@dataclass(frozen=True, slots=True)
class ResourceFacts:
    course_published: bool = False
    free_preview: bool = False
    enrolled: bool = False
    has_active_subscription: bool = False


@dataclass(frozen=True, slots=True)
class AccessRequest:
    namespace: Namespace
    action: Action
    resource: ResourceKind
    # Owner of the resource for self-scoped actions (enroll, account data).
    target_user_id: str | None = None
    facts: ResourceFacts = field(default_factory=ResourceFacts)


@dataclass(frozen=True, slots=True)
class Allow:
    rule: str
    # Set when the action is already satisfied (self-enroll on an existing enrollment).
    noop: bool = False


@dataclass(frozen=True, slots=True)
class Deny:
    reason: DenyReason
    rule: str


Decision = Allow | Deny


_DENY_ERRORS: dict[DenyReason, tuple[type[ApiError], str]] = {
    DenyReason.UNAUTHORIZED: (AuthenticationRequired, "Unauthorized"),
    DenyReason.AUTHENTICATION_REQUIRED: (AuthenticationRequired, "Authentication required"),
    DenyReason.ADMIN_REQUIRED: (Forbidden, "Admin access required"),
    DenyReason.SUBSCRIPTION_REQUIRED: (
        Forbidden,
        "Active subscription required to enroll in courses",
    ),
    DenyReason.NOT_ENROLLED: (Forbidden, "User is not enrolled in this course"),
    DenyReason.ALREADY_ENROLLED: (Conflict, "User is already enrolled in this course"),
    DenyReason.FORBIDDEN: (Forbidden, "Forbidden"),
}


def error_for(deny: Deny) -> ApiError:
    error_cls, message = _DENY_ERRORS[deny.reason]
    return error_cls(message, code=deny.reason.value)
