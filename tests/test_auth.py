"""
tests.test_auth

Session resolution and the admin session store.

Responsibilities:
- End-user tokens: bearer wins over cookie; any invalid token is Anonymous.
- Admin tokens: lazy expiry on validation, background reaping, inactive admins.
"""

from __future__ import annotations

from datetime import timedelta

import httpx
import pytest
from fastapi import FastAPI

from lingala_api.auth.admin_sessions import AdminSessionStatus
from lingala_api.auth.models import ANONYMOUS, UserPrincipal
from lingala_api.auth.resolver import RequestCredentials, SessionResolver, bearer_token
from lingala_api.auth.tokens import JwtConfig, issue_session_token
from lingala_api.db.models import AdminSession, utcnow
from lingala_api.db.repositories.admins import AdminRepo
from tests.conftest import Seed, bearer

CFG = JwtConfig(alg="HS256", issuer="lingala-api", audience="lingala-web", secret="s3cret")


def _token(cfg: JwtConfig = CFG, **overrides) -> str:
    fields = {"user_id": "u-1", "email": "u@example.com", "is_admin": False, "ttl": timedelta(hours=1)}
    fields.update(overrides)
    return issue_session_token(cfg=cfg, **fields)


def test_bearer_token_parsing() -> None:
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None


def test_resolver_prefers_bearer_over_cookie() -> None:
    resolver = SessionResolver(CFG)
    creds = RequestCredentials(bearer=_token(user_id="from-bearer"), cookie=_token(user_id="from-cookie"))
    principal = resolver.resolve(creds)
    assert isinstance(principal, UserPrincipal)
    assert principal.id == "from-bearer"


def test_resolver_never_raises() -> None:
    resolver = SessionResolver(CFG)
    other = JwtConfig(alg="HS256", issuer="lingala-api", audience="lingala-web", secret="other")
    assert resolver.resolve(RequestCredentials(bearer=None, cookie=None)) is ANONYMOUS
    assert resolver.resolve(RequestCredentials(bearer="not-a-jwt", cookie=None)) is ANONYMOUS
    assert resolver.resolve(RequestCredentials(bearer=_token(other), cookie=None)) is ANONYMOUS
    expired = _token(ttl=timedelta(seconds=-5))
    assert resolver.resolve(RequestCredentials(bearer=None, cookie=expired)) is ANONYMOUS


def test_resolver_carries_admin_flag_for_display() -> None:
    principal = SessionResolver(CFG).resolve(RequestCredentials(bearer=_token(is_admin=True), cookie=None))
    assert isinstance(principal, UserPrincipal)
    assert principal.is_admin is True


@pytest.mark.asyncio
async def test_sign_up_then_session(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/auth/sign-up", json={"email": "New@Example.com", "password": "longenough", "name": "N"}
    )
    assert r.status_code == 201
    token = r.json()["token"]
    assert r.json()["user"]["email"] == "new@example.com"

    r = await client.get("/api/auth/session", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["isAdmin"] is False

    r = await client.post("/api/auth/sign-up", json={"email": "new@example.com", "password": "longenough"})
    assert r.status_code == 400
    assert r.json()["code"] == "EMAIL_EXISTS"

    r = await client.post("/api/auth/sign-in", json={"email": "new@example.com", "password": "wrong-one"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_login_me_logout(client: httpx.AsyncClient, seed: Seed) -> None:
    await seed.admin_token(email="root@example.com")

    r = await client.post("/api/admin/auth/login", json={"email": "root@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_CREDENTIALS"

    r = await client.post(
        "/api/admin/auth/login", json={"email": "root@example.com", "password": "correct-horse"}
    )
    assert r.status_code == 200
    token = r.json()["token"]
    assert len(token) == 64

    r = await client.get("/api/admin/auth/me", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["email"] == "root@example.com"

    r = await client.post("/api/admin/auth/logout", headers=bearer(token))
    assert r.status_code == 200
    r = await client.get("/api/admin/auth/me", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_expired_admin_token_is_rejected_and_removed(
    app: FastAPI, client: httpx.AsyncClient, seed: Seed
) -> None:
    token = await seed.admin_token()
    async with app.state.sessionmaker() as session:
        row = await session.get(AdminSession, 1)
        assert row is not None and row.token == token
        row.expires_at = utcnow() - timedelta(seconds=1)
        await session.commit()

    r = await client.get("/api/admin/courses", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["code"] == "SESSION_EXPIRED"

    # The expired row was deleted on first sight.
    r = await client.get("/api/admin/courses", headers=bearer(token))
    assert r.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_store_validation_and_reaping(app: FastAPI, seed: Seed) -> None:
    store = app.state.admin_sessions
    token = await seed.admin_token()

    row = await store.validate(token)
    assert isinstance(row, AdminSession)
    assert row.admin.email == "admin@example.com"
    assert await store.validate("missing") is AdminSessionStatus.NOT_FOUND

    later = utcnow() + timedelta(hours=25)
    assert await store.reap_expired(now=later) == 1
    assert await store.validate(token) is AdminSessionStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_store_validate_at_expiry_instant(app: FastAPI, seed: Seed) -> None:
    store = app.state.admin_sessions
    token = await seed.admin_token()
    row = await store.validate(token)
    assert isinstance(row, AdminSession)
    assert await store.validate(token, now=row.expires_at) is AdminSessionStatus.EXPIRED


@pytest.mark.asyncio
async def test_inactive_admin_session_is_unknown(app: FastAPI, seed: Seed) -> None:
    token = await seed.admin_token()
    async with app.state.sessionmaker() as session:
        admin = await AdminRepo(session).get_by_email("admin@example.com")
        assert admin is not None
        admin.is_active = False
        await session.commit()
    assert await app.state.admin_sessions.validate(token) is AdminSessionStatus.NOT_FOUND
