"""
lingala_api.entitlements.gate

Access gate between routes and the policy engine.

Responsibilities:
- Load the facts a decision needs (publication, free preview, enrollment,
  subscription state) through the repositories.
- Call `decide` and raise the mapped API error on denial.
- Log every denial with the rule and reason that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.auth.models import Anonymous, Principal, UserPrincipal, principal_kind
from lingala_api.db.models import Course, Lesson, Module, User, utcnow
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.subscriptions import SubscriptionRepo
from lingala_api.db.repositories.users import UserRepo
from lingala_api.entitlements.engine import decide
from lingala_api.entitlements.subscriptions import has_active_subscription
from lingala_api.entitlements.types import (
    AccessRequest,
    Action,
    Allow,
    Deny,
    Namespace,
    ResourceFacts,
    ResourceKind,
    error_for,
)
from lingala_api.errors import AuthenticationRequired, NotFound
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)


def require_user(principal: Principal) -> UserPrincipal:
    """Narrow an already-authorized principal to the learner it must be."""
    if not isinstance(principal, UserPrincipal):
        raise AuthenticationRequired("Authentication required", code="AUTHENTICATION_REQUIRED")
    return principal


@dataclass(frozen=True, slots=True)
class LessonAccess:
    lesson: Lesson
    module: Module
    decision: Allow


@dataclass(frozen=True, slots=True)
class EnrollAccess:
    course: Course
    decision: Allow


class AccessGate:
    def __init__(self, session: AsyncSession) -> None:
        self._courses = CourseRepo(session)
        self._lessons = LessonRepo(session)
        self._enrollments = EnrollmentRepo(session)
        self._subscriptions = SubscriptionRepo(session)
        self._users = UserRepo(session)

    def check(self, principal: Principal, request: AccessRequest) -> Allow:
        decision = decide(principal, request)
        if isinstance(decision, Deny):
            log.info(
                "access_denied",
                rule=decision.rule,
                reason=decision.reason.value,
                namespace=request.namespace.value,
                action=request.action.value,
                resource=request.resource.value,
                principal_kind=principal_kind(principal),
            )
            raise error_for(decision)
        return decision

    # -- admin namespace --

    def admin(self, principal: Principal, resource: ResourceKind, action: Action) -> Allow:
        return self.check(principal, AccessRequest(Namespace.ADMIN, action, resource))

    async def admin_enroll(
        self, principal: Principal, *, user_id: str, course_id: int
    ) -> tuple[User, Course]:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        course = await self._course_or_404(course_id)
        enrolled = await self._enrollments.is_enrolled(user_id=user.id, course_id=course.id)
        self.check(
            principal,
            AccessRequest(
                Namespace.ADMIN,
                Action.ENROLL,
                ResourceKind.COURSE,
                target_user_id=user.id,
                facts=ResourceFacts(enrolled=enrolled),
            ),
        )
        return user, course

    # -- public namespace --

    async def read_course(self, principal: Principal, course_id: int) -> Course:
        course = await self._course_or_404(course_id)
        self.check(
            principal,
            AccessRequest(
                Namespace.PUBLIC,
                Action.READ,
                ResourceKind.COURSE,
                facts=ResourceFacts(course_published=course.is_published),
            ),
        )
        return course

    async def read_materials(self, principal: Principal, lesson_id: int) -> LessonAccess:
        lesson, module = await self._lesson_and_module(lesson_id)
        facts = ResourceFacts(
            free_preview=lesson.free_preview,
            enrolled=await self._enrolled(principal, module.course_id),
        )
        decision = self.check(
            principal,
            AccessRequest(Namespace.PUBLIC, Action.READ, ResourceKind.LESSON_MATERIAL, facts=facts),
        )
        return LessonAccess(lesson=lesson, module=module, decision=decision)

    async def read_progress(self, principal: Principal, course_id: int) -> Course:
        if isinstance(principal, Anonymous):
            self.check(principal, AccessRequest(Namespace.PUBLIC, Action.READ, ResourceKind.PROGRESS))
        course = await self._course_or_404(course_id)
        self.check(
            principal,
            AccessRequest(
                Namespace.PUBLIC,
                Action.READ,
                ResourceKind.PROGRESS,
                facts=ResourceFacts(enrolled=await self._enrolled(principal, course.id)),
            ),
        )
        return course

    async def update_progress(self, principal: Principal, lesson_id: int) -> LessonAccess:
        if isinstance(principal, Anonymous):
            self.check(principal, AccessRequest(Namespace.PUBLIC, Action.UPDATE, ResourceKind.PROGRESS))
        lesson, module = await self._lesson_and_module(lesson_id)
        decision = self.check(
            principal,
            AccessRequest(
                Namespace.PUBLIC,
                Action.UPDATE,
                ResourceKind.PROGRESS,
                facts=ResourceFacts(enrolled=await self._enrolled(principal, module.course_id)),
            ),
        )
        return LessonAccess(lesson=lesson, module=module, decision=decision)

    async def self_enroll(self, principal: Principal, course_id: int) -> EnrollAccess:
        target = principal.id if isinstance(principal, UserPrincipal) else None
        if isinstance(principal, Anonymous):
            # Authentication is reported before the course lookup.
            self.check(
                principal,
                AccessRequest(Namespace.PUBLIC, Action.ENROLL, ResourceKind.COURSE, target_user_id=target),
            )
        course = await self._course_or_404(course_id)
        facts = ResourceFacts(
            enrolled=await self._enrolled(principal, course.id),
            has_active_subscription=await self._has_active_subscription(principal),
        )
        decision = self.check(
            principal,
            AccessRequest(
                Namespace.PUBLIC,
                Action.ENROLL,
                ResourceKind.COURSE,
                target_user_id=target,
                facts=facts,
            ),
        )
        return EnrollAccess(course=course, decision=decision)

    def owner(
        self,
        principal: Principal,
        resource: ResourceKind,
        action: Action = Action.READ,
        *,
        target_user_id: str | None = None,
    ) -> UserPrincipal:
        """Allow a caller to act on their own account data; returns the user principal.

        `target_user_id` defaults to the caller, so routes that only ever touch the
        caller's rows reduce to an authentication check.
        """
        if target_user_id is None and isinstance(principal, UserPrincipal):
            target_user_id = principal.id
        self.check(
            principal,
            AccessRequest(Namespace.PUBLIC, action, resource, target_user_id=target_user_id),
        )
        return require_user(principal)

    # -- fact loading --

    async def _course_or_404(self, course_id: int) -> Course:
        course = await self._courses.get(course_id)
        if course is None:
            raise NotFound("Course not found", code="COURSE_NOT_FOUND")
        return course

    async def _lesson_and_module(self, lesson_id: int) -> tuple[Lesson, Module]:
        found = await self._lessons.get_with_module(lesson_id)
        if found is None:
            raise NotFound("Lesson not found", code="LESSON_NOT_FOUND")
        lesson, module = found
        if module is None:
            raise NotFound("Module not found", code="MODULE_NOT_FOUND")
        return lesson, module

    async def _enrolled(self, principal: Principal, course_id: int) -> bool:
        if not isinstance(principal, UserPrincipal):
            return False
        return await self._enrollments.is_enrolled(user_id=principal.id, course_id=course_id)

    async def _has_active_subscription(self, principal: Principal) -> bool:
        if not isinstance(principal, UserPrincipal):
            return False
        rows = await self._subscriptions.list_for_user(principal.id)
        return has_active_subscription(rows, now=utcnow())


# --- Module Notes -----------------------------------------------------------
# Decisions are computed per call and never cached; a subscription that lapses
# mid-session takes effect on the next request.
