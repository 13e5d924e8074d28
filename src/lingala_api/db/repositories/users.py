from __future__ import annotations

from typing import Any

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import User, utcnow


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(
        self, *, email: str, name: str | None, password_hash: str | None, is_admin: bool = False
    ) -> User:
        user = User(email=email, name=name, password_hash=password_hash, is_admin=is_admin)
        self._session.add(user)
        await self._session.flush()
        return user

    async def update(self, user: User, **fields: Any) -> User:
        for name, value in fields.items():
            setattr(user, name, value)
        user.updated_at = utcnow()
        await self._session.flush()
        return user

    async def delete(self, user: User) -> None:
        await self._session.delete(user)
        await self._session.flush()

    async def search(
        self,
        *,
        search: str | None,
        admins_only: bool | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """Page through users, newest first; returns the page and the total match count."""
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(User.email.ilike(pattern), User.name.ilike(pattern)))
        if admins_only is not None:
            conditions.append(User.is_admin.is_(admins_only))

        stmt = select(User).where(*conditions).order_by(desc(User.created_at)).limit(limit).offset(offset)
        count_stmt = select(func.count(User.id)).where(*conditions)
        users = list((await self._session.execute(stmt)).scalars().all())
        total = int((await self._session.execute(count_stmt)).scalar_one())
        return users, total

    async def count(self) -> int:
        return int((await self._session.execute(select(func.count(User.id)))).scalar_one())

    async def recent(self, limit: int = 5) -> list[User]:
        stmt = select(User).order_by(desc(User.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
