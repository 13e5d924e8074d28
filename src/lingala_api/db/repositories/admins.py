"""
lingala_api.db.repositories.admins

Repositories for admin accounts and their persisted sessions.

Responsibilities:
- Admin account lookups used by login and by session validation.
- Raw `admin_sessions` row access (insert, lookup by token, delete, bulk expiry).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Admin, AdminSession, utcnow


class AdminRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, admin_id: str) -> Admin | None:
        return await self._session.get(Admin, admin_id)

    async def get_by_email(self, email: str) -> Admin | None:
        stmt = select(Admin).where(func.lower(Admin.email) == email.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, *, email: str, name: str, password_hash: str, role: str) -> Admin:
        admin = Admin(email=email, name=name, password_hash=password_hash, role=role)
        self._session.add(admin)
        await self._session.flush()
        return admin

    async def touch_login(self, admin: Admin) -> None:
        admin.last_login_at = utcnow()
        await self._session.flush()


class AdminSessionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(
        self,
        *,
        admin_id: str,
        token: str,
        expires_at: datetime,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AdminSession:
        row = AdminSession(
            admin_id=admin_id,
            token=token,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_token(self, token: str) -> AdminSession | None:
        stmt = select(AdminSession).where(AdminSession.token == token)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def delete_by_token(self, token: str) -> int:
        result = await self._session.execute(delete(AdminSession).where(AdminSession.token == token))
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        result = await self._session.execute(delete(AdminSession).where(AdminSession.expires_at < now))
        return result.rowcount or 0
