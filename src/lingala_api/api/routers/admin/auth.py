"""
lingala_api.api.routers.admin.auth

Admin login/logout and profile.

Responsibilities:
- Exchange admin credentials for an opaque bearer token (admin session store).
- Revoke the presented token on logout.
- Return the profile of the admin behind the presented token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import admin_store_dep, db_session, hasher_dep
from lingala_api.api.schemas import AdminOut, ApiModel
from lingala_api.auth.admin_sessions import AdminSessionStore
from lingala_api.auth.deps import current_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.auth.passwords import PasswordHasher
from lingala_api.auth.resolver import bearer_token
from lingala_api.db.repositories.admins import AdminRepo
from lingala_api.errors import AuthenticationRequired, InvalidInput
from lingala_api.observability.logging import get_logger
from lingala_api.services.accounts import AccountService

log = get_logger(__name__)

router = APIRouter(prefix="/api/admin/auth", tags=["admin-auth"])


class AdminLoginRequest(ApiModel):
    email: str | None = None
    password: str | None = None


class AdminLoginResponse(ApiModel):
    admin: AdminOut
    token: str


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or "unknown"


@router.post("/login", response_model=AdminLoginResponse)
async def login(
    body: AdminLoginRequest,
    request: Request,
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
    store: AdminSessionStore = Depends(admin_store_dep),
) -> AdminLoginResponse:
    admin = await AccountService(session, hasher=hasher).authenticate_admin(
        email=body.email, password=body.password
    )
    row = await store.create(
        admin_id=admin.id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    log.info("admin_login", admin_id=admin.id)
    return AdminLoginResponse(admin=AdminOut.model_validate(admin), token=row.token)


@router.post("/logout")
async def logout(
    request: Request,
    store: AdminSessionStore = Depends(admin_store_dep),
) -> dict[str, object]:
    token = bearer_token(request.headers.get("authorization"))
    if token is None:
        raise InvalidInput("No token provided", code="NO_TOKEN")
    await store.revoke(token)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=AdminOut)
async def me(
    principal: AdminPrincipal = Depends(current_admin),
    session: AsyncSession = Depends(db_session),
) -> AdminOut:
    admin = await AdminRepo(session).get(principal.id)
    if admin is None:
        raise AuthenticationRequired("Not authenticated", code="UNAUTHORIZED")
    return AdminOut.model_validate(admin)
