"""
lingala_api.services.enrollments

Enrollment creation for both entry points.

Responsibilities:
- Self-enroll: idempotent; an existing enrollment (or a lost insert race) is success.
- Admin enroll: an existing enrollment (or a lost insert race) is ALREADY_ENROLLED.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.auth.models import AdminPrincipal, Principal
from lingala_api.db.models import Enrollment
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.entitlements.gate import AccessGate, require_user
from lingala_api.errors import Conflict
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class EnrollResult:
    enrollment: Enrollment
    created: bool


class EnrollmentService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._gate = AccessGate(session)
        self._enrollments = EnrollmentRepo(session)

    async def self_enroll(self, principal: Principal, course_id: int) -> EnrollResult:
        access = await self._gate.self_enroll(principal, course_id)
        user = require_user(principal)

        if access.decision.noop:
            existing = await self._enrollments.get(user_id=user.id, course_id=course_id)
            if existing is not None:
                return EnrollResult(enrollment=existing, created=False)

        try:
            enrollment = await self._enrollments.create(user_id=user.id, course_id=course_id)
            await self._session.commit()
        except IntegrityError:
            await self._session.rollback()
            existing = await self._enrollments.get(user_id=user.id, course_id=course_id)
            if existing is None:
                raise
            log.info("enrollment_race_resolved", course_id=course_id)
            return EnrollResult(enrollment=existing, created=False)

        log.info("enrollment_created", course_id=course_id, source="self")
        return EnrollResult(enrollment=enrollment, created=True)

    async def admin_enroll(
        self, principal: AdminPrincipal, *, user_id: str, course_id: int
    ) -> Enrollment:
        await self._gate.admin_enroll(principal, user_id=user_id, course_id=course_id)
        try:
            enrollment = await self._enrollments.create(user_id=user_id, course_id=course_id)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict(
                "User is already enrolled in this course", code="ALREADY_ENROLLED"
            ) from e
        log.info(
            "enrollment_created",
            course_id=course_id,
            user_id=user_id,
            source="admin",
            admin_id=principal.id,
        )
        return enrollment
