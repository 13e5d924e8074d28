from __future__ import annotations

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Lesson, Module, Progress, utcnow


class ProgressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, user_id: str, lesson_id: int) -> Progress | None:
        stmt = select(Progress).where(Progress.user_id == user_id, Progress.lesson_id == lesson_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_lessons(self, *, user_id: str, lesson_ids: list[int]) -> list[Progress]:
        if not lesson_ids:
            return []
        stmt = (
            select(Progress)
            .where(Progress.user_id == user_id, Progress.lesson_id.in_(lesson_ids))
            .order_by(Progress.lesson_id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(
        self,
        *,
        user_id: str,
        lesson_id: int,
        current_time_seconds: int,
        duration_seconds: int,
        progress_percentage: int,
        is_completed: bool,
        watch_time_seconds: int,
    ) -> Progress:
        row = await self.get(user_id=user_id, lesson_id=lesson_id)
        now = utcnow()
        if row is None:
            row = Progress(user_id=user_id, lesson_id=lesson_id)
            self._session.add(row)
        row.current_time_seconds = current_time_seconds
        row.duration_seconds = duration_seconds
        row.progress_percentage = progress_percentage
        row.watch_time_seconds = watch_time_seconds
        row.is_completed = is_completed
        if is_completed and row.completed_at is None:
            row.completed_at = now
        row.updated_at = now
        await self._session.flush()
        return row

    async def count_completed(self) -> int:
        stmt = select(func.count(Progress.id)).where(Progress.is_completed.is_(True))
        return int((await self._session.execute(stmt)).scalar_one())

    async def last_viewed_in_course(self, *, user_id: str, course_id: int) -> Lesson | None:
        stmt = (
            select(Lesson)
            .join(Progress, Progress.lesson_id == Lesson.id)
            .join(Module, Module.id == Lesson.module_id)
            .where(Progress.user_id == user_id, Module.course_id == course_id)
            .order_by(desc(Progress.updated_at), desc(Progress.id))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
