"""
lingala_api.auth.admin_sessions

Server-side store for admin bearer tokens.

Responsibilities:
- Issue 256-bit opaque tokens with a fixed TTL, persisted in `admin_sessions`.
- Validate tokens into an `AdminSession` or a typed failure status.
- Revoke tokens and periodically reap expired rows in a background task.
"""

from __future__ import annotations

import asyncio
import contextlib
import secrets
from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lingala_api.db.models import AdminSession, utcnow
from lingala_api.db.repositories.admins import AdminSessionRepo
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)


class AdminSessionStatus(StrEnum):
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


def generate_token() -> str:
    return secrets.token_hex(32)


class AdminSessionStore:
    """Admin sessions backed by the database.

    Call `start_reaper()` on app startup and `stop_reaper()` on shutdown.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        ttl: timedelta = timedelta(hours=24),
        reap_interval_seconds: float = 300,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = ttl
        self._reap_interval_seconds = reap_interval_seconds
        self._reaper_task: asyncio.Task[None] | None = None

    async def create(
        self, *, admin_id: str, ip_address: str | None, user_agent: str | None
    ) -> AdminSession:
        async with self._session_factory() as session:
            row = await AdminSessionRepo(session).insert(
                admin_id=admin_id,
                token=generate_token(),
                expires_at=utcnow() + self._ttl,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            await session.commit()
        log.info("admin_session_created", admin_id=admin_id, expires_at=row.expires_at.isoformat())
        return row

    async def validate(
        self, token: str, *, now: datetime | None = None
    ) -> AdminSession | AdminSessionStatus:
        now = now or utcnow()
        async with self._session_factory() as session:
            repo = AdminSessionRepo(session)
            row = await repo.get_by_token(token)
            if row is None:
                return AdminSessionStatus.NOT_FOUND
            if now >= row.expires_at:
                await repo.delete_by_token(token)
                await session.commit()
                return AdminSessionStatus.EXPIRED
            if not row.admin.is_active:
                return AdminSessionStatus.NOT_FOUND
            return row

    async def revoke(self, token: str) -> None:
        async with self._session_factory() as session:
            await AdminSessionRepo(session).delete_by_token(token)
            await session.commit()

    async def reap_expired(self, *, now: datetime | None = None) -> int:
        async with self._session_factory() as session:
            removed = await AdminSessionRepo(session).delete_expired(now or utcnow())
            await session.commit()
        if removed:
            log.info("admin_sessions_reaped", count=removed)
        return removed

    @property
    def reaper_running(self) -> bool:
        return self._reaper_task is not None and not self._reaper_task.done()

    def start_reaper(self) -> None:
        if self._reaper_task is not None and not self._reaper_task.done():
            return
        self._reaper_task = asyncio.create_task(self._reap_loop())

    async def stop_reaper(self) -> None:
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None

    async def _reap_loop(self) -> None:
        while True:
            await asyncio.sleep(self._reap_interval_seconds)
            try:
                await self.reap_expired()
            except Exception as e:  # noqa: BLE001
                # A failed sweep is retried on the next tick; lazy expiry still applies.
                log.warning("admin_session_reap_failed", error=str(e))


# --- Module Notes -----------------------------------------------------------
# Validation opens its own short-lived DB session so a store hit is committed
# (expired-row deletion) independently of the request transaction.
