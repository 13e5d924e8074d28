"""
lingala_api.entitlements.engine

Entitlement policy engine.

Responsibilities:
- Decide `Allow` or `Deny(reason)` for a principal and an access request.
- Stay pure: no I/O, no clock, no caching. Facts arrive pre-loaded.

Rules are evaluated in order, first match wins:
1. admin namespace: admin-role admins pass everything except enroll; other
   principals get ADMIN_REQUIRED (or UNAUTHORIZED when anonymous)
2. published course reads are open
3. free-preview lesson materials are open
4. materials and progress need a session and an enrollment in the course
4b. account resources are visible to their owner only
5. self-enroll needs an active subscription; re-enrolling is a no-op
6. admin enroll refuses an existing enrollment
7. everything else is FORBIDDEN
"""

from __future__ import annotations

from lingala_api.auth.models import AdminPrincipal, Anonymous, Principal, UserPrincipal
from lingala_api.entitlements.types import (
    AccessRequest,
    Action,
    Allow,
    Decision,
    Deny,
    DenyReason,
    Namespace,
    ResourceKind,
)

_ENROLLMENT_GATED: frozenset[tuple[Action, ResourceKind]] = frozenset(
    {
        (Action.READ, ResourceKind.LESSON_MATERIAL),
        (Action.READ, ResourceKind.PROGRESS),
        (Action.UPDATE, ResourceKind.PROGRESS),
    }
)

_OWNER_SCOPED: frozenset[ResourceKind] = frozenset(
    {
        ResourceKind.ENROLLMENT,
        ResourceKind.SUBSCRIPTION,
        ResourceKind.PAYMENT,
        ResourceKind.ACCOUNT,
    }
)


def decide(principal: Principal, request: AccessRequest) -> Decision:
    if request.namespace is Namespace.ADMIN:
        return _decide_admin(principal, request)
    return _decide_public(principal, request)


def _decide_admin(principal: Principal, request: AccessRequest) -> Decision:
    if isinstance(principal, Anonymous):
        return Deny(DenyReason.UNAUTHORIZED, rule="admin_bypass")
    if not isinstance(principal, AdminPrincipal) or not principal.has_admin_role:
        # End-user sessions never reach the admin namespace, whatever their is_admin flag says.
        return Deny(DenyReason.ADMIN_REQUIRED, rule="admin_bypass")
    if request.action is not Action.ENROLL:
        return Allow(rule="admin_bypass")

    if request.resource is ResourceKind.COURSE:
        if request.facts.enrolled:
            return Deny(DenyReason.ALREADY_ENROLLED, rule="admin_enroll")
        return Allow(rule="admin_enroll")
    return Deny(DenyReason.FORBIDDEN, rule="default")


def _decide_public(principal: Principal, request: AccessRequest) -> Decision:
    action, resource, facts = request.action, request.resource, request.facts

    if action is Action.READ and resource is ResourceKind.COURSE and facts.course_published:
        return Allow(rule="published_content")

    if action is Action.READ and resource is ResourceKind.LESSON_MATERIAL and facts.free_preview:
        return Allow(rule="free_preview")

    if (action, resource) in _ENROLLMENT_GATED:
        if not isinstance(principal, UserPrincipal):
            return _unauthenticated(principal, rule="enrollment_gated")
        if not facts.enrolled:
            return Deny(DenyReason.NOT_ENROLLED, rule="enrollment_gated")
        return Allow(rule="enrollment_gated")

    if resource in _OWNER_SCOPED:
        if not isinstance(principal, UserPrincipal):
            return _unauthenticated(principal, rule="owner_scoped")
        if principal.id == request.target_user_id:
            return Allow(rule="owner_scoped")
        return Deny(DenyReason.FORBIDDEN, rule="owner_scoped")

    if action is Action.ENROLL and resource is ResourceKind.COURSE:
        if not isinstance(principal, UserPrincipal):
            return _unauthenticated(principal, rule="self_enroll")
        if principal.id != request.target_user_id:
            return Deny(DenyReason.FORBIDDEN, rule="self_enroll")
        # Subscription first: a lapsed subscriber gets 403 even when already enrolled.
        if not facts.has_active_subscription:
            return Deny(DenyReason.SUBSCRIPTION_REQUIRED, rule="self_enroll")
        if facts.enrolled:
            return Allow(rule="self_enroll", noop=True)
        return Allow(rule="self_enroll")

    return Deny(DenyReason.FORBIDDEN, rule="default")


def _unauthenticated(principal: Principal, *, rule: str) -> Deny:
    # Admin tokens are not end-user sessions; they fall through to the default tier.
    if isinstance(principal, Anonymous):
        return Deny(DenyReason.AUTHENTICATION_REQUIRED, rule=rule)
    return Deny(DenyReason.FORBIDDEN, rule="default")
