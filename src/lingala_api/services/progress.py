"""
lingala_api.services.progress

Lesson watch-progress tracking.

Responsibilities:
- Record playback position per (user, lesson) and derive completion.
- Summarize completion for a course.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Progress
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.progress import ProgressRepo

COMPLETION_THRESHOLD = 90


@dataclass(frozen=True, slots=True)
class CourseProgress:
    rows: list[Progress]
    completed: int
    total: int

    @property
    def percentage(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 0


def watched_percentage(current_time: float, duration: float) -> float:
    if duration <= 0:
        return 0.0
    return min(current_time / duration * 100, 100.0)


class ProgressService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._progress = ProgressRepo(session)
        self._lessons = LessonRepo(session)

    async def record(
        self,
        *,
        user_id: str,
        lesson_id: int,
        current_time: float,
        duration: float,
        completed: bool = False,
        watch_time_seconds: int = 0,
    ) -> Progress:
        percentage = watched_percentage(current_time, duration)
        row = await self._progress.upsert(
            user_id=user_id,
            lesson_id=lesson_id,
            current_time_seconds=round(current_time),
            duration_seconds=round(duration),
            progress_percentage=round(percentage),
            is_completed=completed or percentage >= COMPLETION_THRESHOLD,
            watch_time_seconds=watch_time_seconds,
        )
        await self._session.commit()
        return row

    async def for_course(self, *, user_id: str, course_id: int) -> CourseProgress:
        lesson_ids = await self._lessons.ids_for_course(course_id)
        rows = await self._progress.list_for_lessons(user_id=user_id, lesson_ids=lesson_ids)
        completed = sum(1 for row in rows if row.is_completed)
        return CourseProgress(rows=rows, completed=completed, total=len(lesson_ids))
