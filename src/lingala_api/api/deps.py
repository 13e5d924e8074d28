"""
lingala_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Expose app-scoped infrastructure (settings, sessionmaker, hasher, admin
  session store, Stripe client) stored on `app.state` at startup.
- Provide request-scoped DB sessions and the access gate bound to them.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lingala_api.auth.admin_sessions import AdminSessionStore
from lingala_api.auth.passwords import PasswordHasher
from lingala_api.billing.stripe_client import StripeClient
from lingala_api.entitlements.gate import AccessGate
from lingala_api.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Set by `create_app`; tests pass their own Settings there.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed by services and routers.
    async with session_factory() as session:
        yield session


def hasher_dep(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher  # type: ignore[attr-defined]


def admin_store_dep(request: Request) -> AdminSessionStore:
    return request.app.state.admin_sessions  # type: ignore[attr-defined]


def stripe_dep(request: Request) -> StripeClient:
    return request.app.state.stripe  # type: ignore[attr-defined]


def gate_dep(session: AsyncSession = Depends(db_session)) -> AccessGate:
    return AccessGate(session)
