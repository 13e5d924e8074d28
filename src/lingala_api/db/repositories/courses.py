"""
lingala_api.db.repositories.courses

Repository for `Course` entities.

Responsibilities:
- Catalog reads (published listing, single course, full module/lesson tree).
- Admin writes (create/update/delete/publish toggle) and structure counts.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lingala_api.db.models import Course, Lesson, LessonMaterial, Module, utcnow


class CourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: int) -> Course | None:
        return await self._session.get(Course, course_id)

    async def get_with_structure(self, course_id: int) -> Course | None:
        stmt = (
            select(Course)
            .where(Course.id == course_id)
            .options(selectinload(Course.modules).selectinload(Module.lessons))
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_published(self) -> list[Course]:
        stmt = select(Course).where(Course.is_published.is_(True)).order_by(Course.id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_all(self) -> list[Course]:
        stmt = select(Course).order_by(desc(Course.created_at), desc(Course.id))
        return list((await self._session.execute(stmt)).scalars().all())

    async def structure_counts(self, course_ids: list[int]) -> dict[int, tuple[int, int]]:
        """Return `{course_id: (module_count, lesson_count)}` for the given courses."""
        if not course_ids:
            return {}
        module_stmt = (
            select(Module.course_id, func.count(Module.id))
            .where(Module.course_id.in_(course_ids))
            .group_by(Module.course_id)
        )
        lesson_stmt = (
            select(Module.course_id, func.count(Lesson.id))
            .join(Lesson, Lesson.module_id == Module.id)
            .where(Module.course_id.in_(course_ids))
            .group_by(Module.course_id)
        )
        modules = dict((await self._session.execute(module_stmt)).tuples().all())
        lessons = dict((await self._session.execute(lesson_stmt)).tuples().all())
        return {cid: (modules.get(cid, 0), lessons.get(cid, 0)) for cid in course_ids}

    async def create(self, **fields: Any) -> Course:
        course = Course(**fields)
        self._session.add(course)
        await self._session.flush()
        return course

    async def update(self, course: Course, **fields: Any) -> Course:
        for name, value in fields.items():
            setattr(course, name, value)
        course.updated_at = utcnow()
        await self._session.flush()
        return course

    async def delete(self, course: Course) -> dict[str, int]:
        """Delete a course and everything below it; returns per-table deleted counts."""
        module_ids = select(Module.id).where(Module.course_id == course.id)
        lesson_ids = select(Lesson.id).where(Lesson.module_id.in_(module_ids))
        counts = {
            "lessonMaterials": await self._count(
                select(func.count(LessonMaterial.id)).where(LessonMaterial.lesson_id.in_(lesson_ids))
            ),
            "lessons": await self._count(select(func.count(Lesson.id)).where(Lesson.id.in_(lesson_ids))),
            "modules": await self._count(select(func.count(Module.id)).where(Module.id.in_(module_ids))),
            "courses": 1,
        }
        await self._session.delete(course)
        await self._session.flush()
        return counts

    async def count(self, *, published_only: bool = False) -> int:
        stmt = select(func.count(Course.id))
        if published_only:
            stmt = stmt.where(Course.is_published.is_(True))
        return await self._count(stmt)

    async def _count(self, stmt) -> int:
        return int((await self._session.execute(stmt)).scalar_one())
