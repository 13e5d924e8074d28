"""
lingala_api.db.repositories.enrollments

Repository for `Enrollment` entities (table `user_enrollments`).

Responsibilities:
- Enrollment membership lookups that feed the access gate.
- Inserts that surface duplicate-key races as `IntegrityError` to the caller.
"""

from __future__ import annotations

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Enrollment


class EnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, user_id: str, course_id: int) -> Enrollment | None:
        stmt = select(Enrollment).where(
            Enrollment.user_id == user_id, Enrollment.course_id == course_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def is_enrolled(self, *, user_id: str, course_id: int) -> bool:
        stmt = select(Enrollment.id).where(
            Enrollment.user_id == user_id, Enrollment.course_id == course_id
        ).limit(1)
        return (await self._session.execute(stmt)).first() is not None

    async def create(self, *, user_id: str, course_id: int) -> Enrollment:
        # Raises IntegrityError on the (user_id, course_id) unique constraint.
        enrollment = Enrollment(user_id=user_id, course_id=course_id)
        self._session.add(enrollment)
        await self._session.flush()
        return enrollment

    async def list_for_user(self, user_id: str) -> list[Enrollment]:
        stmt = (
            select(Enrollment)
            .where(Enrollment.user_id == user_id)
            .order_by(desc(Enrollment.enrolled_at), desc(Enrollment.id))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def count(self, *, active_only: bool = False) -> int:
        stmt = select(func.count(Enrollment.id))
        if active_only:
            stmt = stmt.where(Enrollment.completed_at.is_(None))
        return int((await self._session.execute(stmt)).scalar_one())

    async def recent(self, limit: int = 5) -> list[Enrollment]:
        stmt = select(Enrollment).order_by(desc(Enrollment.enrolled_at), desc(Enrollment.id)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
