"""
lingala_api.db.repositories.lessons

Repository for `Lesson` and `LessonMaterial` entities.

Responsibilities:
- Resolve the owning course of a lesson (Lesson -> Module -> Course).
- Lesson CRUD, ordering, and lesson-material reads/writes.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Lesson, LessonMaterial, Module


class LessonRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, lesson_id: int) -> Lesson | None:
        return await self._session.get(Lesson, lesson_id)

    async def get_with_module(self, lesson_id: int) -> tuple[Lesson, Module | None] | None:
        """Return the lesson and its module (None if the module row is gone)."""
        stmt = (
            select(Lesson, Module)
            .outerjoin(Module, Module.id == Lesson.module_id)
            .where(Lesson.id == lesson_id)
        )
        row = (await self._session.execute(stmt)).first()
        if row is None:
            return None
        return row[0], row[1]

    async def ids_for_course(self, course_id: int) -> list[int]:
        stmt = (
            select(Lesson.id)
            .join(Module, Module.id == Lesson.module_id)
            .where(Module.course_id == course_id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def next_order_index(self, module_id: int) -> int:
        stmt = select(func.max(Lesson.order_index)).where(Lesson.module_id == module_id)
        current = (await self._session.execute(stmt)).scalar_one_or_none()
        return 0 if current is None else current + 1

    async def create(self, **fields: Any) -> Lesson:
        lesson = Lesson(**fields)
        self._session.add(lesson)
        await self._session.flush()
        return lesson

    async def update(self, lesson: Lesson, **fields: Any) -> Lesson:
        for name, value in fields.items():
            setattr(lesson, name, value)
        await self._session.flush()
        return lesson

    async def delete(self, lesson: Lesson) -> None:
        await self._session.delete(lesson)
        await self._session.flush()

    async def set_order_index(self, lesson_id: int, order_index: int) -> bool:
        stmt = update(Lesson).where(Lesson.id == lesson_id).values(order_index=order_index)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    # -- materials --

    async def list_materials(self, lesson_id: int) -> list[LessonMaterial]:
        stmt = (
            select(LessonMaterial)
            .where(LessonMaterial.lesson_id == lesson_id)
            .order_by(LessonMaterial.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_material(self, material_id: int) -> LessonMaterial | None:
        return await self._session.get(LessonMaterial, material_id)

    async def add_material(self, **fields: Any) -> LessonMaterial:
        material = LessonMaterial(**fields)
        self._session.add(material)
        await self._session.flush()
        return material

    async def delete_material(self, material: LessonMaterial) -> None:
        await self._session.delete(material)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# `get_with_module` is the single place the Lesson -> Module -> Course walk happens;
# the access gate relies on it to derive the course for enrollment checks.
