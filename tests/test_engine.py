"""
tests.test_engine

Unit tests for the pure entitlement engine: one case per rule plus the
namespace separation between end-user and admin identities.
"""

from __future__ import annotations

import pytest

from lingala_api.auth.models import ANONYMOUS, AdminPrincipal, UserPrincipal
from lingala_api.entitlements.engine import decide
from lingala_api.entitlements.gate import require_user
from lingala_api.entitlements.types import (
    AccessRequest,
    Action,
    Allow,
    Deny,
    DenyReason,
    Namespace,
    ResourceFacts,
    ResourceKind,
)
from lingala_api.errors import AuthenticationRequired

USER = UserPrincipal(id="u-1", email="u@example.com")
FLAGGED_USER = UserPrincipal(id="u-2", email="boss@example.com", is_admin=True)
ADMIN = AdminPrincipal(id="a-1", email="a@example.com", role="admin")
SUPER = AdminPrincipal(id="a-2", email="s@example.com", role="super_admin")
EDITOR = AdminPrincipal(id="a-3", email="e@example.com", role="editor")


def _public(action: Action, resource: ResourceKind, **facts: bool) -> AccessRequest:
    return AccessRequest(Namespace.PUBLIC, action, resource, facts=ResourceFacts(**facts))


def _enroll(target: str | None, **facts: bool) -> AccessRequest:
    return AccessRequest(
        Namespace.PUBLIC,
        Action.ENROLL,
        ResourceKind.COURSE,
        target_user_id=target,
        facts=ResourceFacts(**facts),
    )


def test_unpublished_course_is_denied_to_anonymous() -> None:
    decision = decide(ANONYMOUS, _public(Action.READ, ResourceKind.COURSE, course_published=False))
    assert isinstance(decision, Deny)
    assert decision.reason is DenyReason.FORBIDDEN


def test_published_course_is_open() -> None:
    decision = decide(ANONYMOUS, _public(Action.READ, ResourceKind.COURSE, course_published=True))
    assert decision == Allow(rule="published_content")


def test_free_preview_materials_are_open() -> None:
    request = _public(Action.READ, ResourceKind.LESSON_MATERIAL, free_preview=True)
    assert decide(ANONYMOUS, request) == Allow(rule="free_preview")


def test_non_preview_materials_need_authentication() -> None:
    decision = decide(ANONYMOUS, _public(Action.READ, ResourceKind.LESSON_MATERIAL))
    assert decision == Deny(DenyReason.AUTHENTICATION_REQUIRED, rule="enrollment_gated")


@pytest.mark.parametrize(
    ("action", "resource"),
    [
        (Action.READ, ResourceKind.LESSON_MATERIAL),
        (Action.READ, ResourceKind.PROGRESS),
        (Action.UPDATE, ResourceKind.PROGRESS),
    ],
)
def test_enrollment_gated_resources(action: Action, resource: ResourceKind) -> None:
    assert decide(USER, _public(action, resource)).reason is DenyReason.NOT_ENROLLED  # type: ignore[union-attr]
    assert isinstance(decide(USER, _public(action, resource, enrolled=True)), Allow)


def test_admin_token_on_public_gated_route_is_forbidden() -> None:
    decision = decide(ADMIN, _public(Action.READ, ResourceKind.LESSON_MATERIAL))
    assert decision == Deny(DenyReason.FORBIDDEN, rule="default")


def test_owner_scoped_resources() -> None:
    own = AccessRequest(Namespace.PUBLIC, Action.READ, ResourceKind.SUBSCRIPTION, target_user_id=USER.id)
    other = AccessRequest(Namespace.PUBLIC, Action.READ, ResourceKind.PAYMENT, target_user_id="u-9")
    assert decide(USER, own) == Allow(rule="owner_scoped")
    assert decide(USER, other) == Deny(DenyReason.FORBIDDEN, rule="owner_scoped")
    assert decide(ANONYMOUS, own).reason is DenyReason.AUTHENTICATION_REQUIRED  # type: ignore[union-attr]


def test_self_enroll_requires_active_subscription() -> None:
    decision = decide(USER, _enroll(USER.id))
    assert decision == Deny(DenyReason.SUBSCRIPTION_REQUIRED, rule="self_enroll")


def test_self_enroll_is_idempotent() -> None:
    assert decide(USER, _enroll(USER.id, has_active_subscription=True)) == Allow(rule="self_enroll")
    again = decide(USER, _enroll(USER.id, has_active_subscription=True, enrolled=True))
    assert again == Allow(rule="self_enroll", noop=True)


def test_lapsed_subscriber_cannot_reenroll_even_when_enrolled() -> None:
    decision = decide(USER, _enroll(USER.id, enrolled=True))
    assert decision.reason is DenyReason.SUBSCRIPTION_REQUIRED  # type: ignore[union-attr]


def test_self_enroll_for_someone_else_is_forbidden() -> None:
    decision = decide(USER, _enroll("u-9", has_active_subscription=True))
    assert decision == Deny(DenyReason.FORBIDDEN, rule="self_enroll")


def test_self_enroll_needs_a_session() -> None:
    decision = decide(ANONYMOUS, _enroll(None, has_active_subscription=True))
    assert decision.reason is DenyReason.AUTHENTICATION_REQUIRED  # type: ignore[union-attr]


@pytest.mark.parametrize("principal", [ADMIN, SUPER])
@pytest.mark.parametrize("action", [Action.READ, Action.CREATE, Action.DELETE, Action.REORDER])
def test_admin_roles_bypass_everything_but_enroll(principal: AdminPrincipal, action: Action) -> None:
    request = AccessRequest(Namespace.ADMIN, action, ResourceKind.LESSON)
    assert decide(principal, request) == Allow(rule="admin_bypass")


def test_admin_namespace_rejects_other_identities() -> None:
    request = AccessRequest(Namespace.ADMIN, Action.READ, ResourceKind.USER)
    assert decide(ANONYMOUS, request).reason is DenyReason.UNAUTHORIZED  # type: ignore[union-attr]
    assert decide(EDITOR, request).reason is DenyReason.ADMIN_REQUIRED  # type: ignore[union-attr]
    # The end-user flag is display-only.
    assert decide(FLAGGED_USER, request).reason is DenyReason.ADMIN_REQUIRED  # type: ignore[union-attr]


def test_admin_enroll() -> None:
    fresh = AccessRequest(Namespace.ADMIN, Action.ENROLL, ResourceKind.COURSE, target_user_id="u-1")
    taken = AccessRequest(
        Namespace.ADMIN,
        Action.ENROLL,
        ResourceKind.COURSE,
        target_user_id="u-1",
        facts=ResourceFacts(enrolled=True),
    )
    assert decide(ADMIN, fresh) == Allow(rule="admin_enroll")
    assert decide(ADMIN, taken) == Deny(DenyReason.ALREADY_ENROLLED, rule="admin_enroll")


def test_admin_enroll_on_other_resources_is_forbidden() -> None:
    request = AccessRequest(Namespace.ADMIN, Action.ENROLL, ResourceKind.LESSON)
    assert decide(ADMIN, request) == Deny(DenyReason.FORBIDDEN, rule="default")


def test_everything_else_is_forbidden() -> None:
    decision = decide(USER, _public(Action.DELETE, ResourceKind.COURSE, course_published=True))
    assert decision == Deny(DenyReason.FORBIDDEN, rule="default")


def test_require_user_narrows_only_learners() -> None:
    assert require_user(USER) is USER
    for principal in (ANONYMOUS, ADMIN):
        with pytest.raises(AuthenticationRequired):
            require_user(principal)
