from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Lesson, Module


class ModuleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, module_id: int) -> Module | None:
        return await self._session.get(Module, module_id)

    async def list_for_course(self, course_id: int) -> list[Module]:
        stmt = (
            select(Module)
            .where(Module.course_id == course_id)
            .order_by(Module.order_index.is_(None), Module.order_index, Module.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def next_order_index(self, course_id: int) -> int:
        stmt = select(func.max(Module.order_index)).where(Module.course_id == course_id)
        current = (await self._session.execute(stmt)).scalar_one_or_none()
        return 0 if current is None else current + 1

    async def create(self, **fields: Any) -> Module:
        module = Module(**fields)
        self._session.add(module)
        await self._session.flush()
        return module

    async def update(self, module: Module, **fields: Any) -> Module:
        for name, value in fields.items():
            setattr(module, name, value)
        await self._session.flush()
        return module

    async def delete(self, module: Module) -> int:
        """Delete a module; returns how many lessons went with it."""
        stmt = select(func.count(Lesson.id)).where(Lesson.module_id == module.id)
        lesson_count = int((await self._session.execute(stmt)).scalar_one())
        await self._session.delete(module)
        await self._session.flush()
        return lesson_count

    async def set_order_index(self, module_id: int, order_index: int) -> bool:
        stmt = update(Module).where(Module.id == module_id).values(order_index=order_index)
        result = await self._session.execute(stmt)
        return result.rowcount > 0
