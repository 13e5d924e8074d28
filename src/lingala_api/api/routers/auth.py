"""
lingala_api.api.routers.auth

End-user session endpoints.

Responsibilities:
- Sign-up and sign-in: issue a signed session token, returned in the body and
  set as an HTTP-only cookie.
- Sign-out (clears the cookie) and session introspection.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session, hasher_dep, settings_dep
from lingala_api.api.schemas import ApiModel, UserOut
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.auth.passwords import PasswordHasher
from lingala_api.auth.tokens import issue_session_token, jwt_config
from lingala_api.db.models import User
from lingala_api.errors import AuthenticationRequired
from lingala_api.services.accounts import AccountService
from lingala_api.settings import Settings

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignUpRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str
    name: str | None = Field(default=None, max_length=255)


class SignInRequest(BaseModel):
    email: str
    password: str


class SessionResponse(ApiModel):
    user: UserOut
    token: str


class SessionUser(ApiModel):
    id: str
    email: str
    is_admin: bool


def _start_session(response: Response, user: User, settings: Settings) -> SessionResponse:
    ttl = timedelta(hours=settings.session_ttl_hours)
    token = issue_session_token(
        cfg=jwt_config(settings),
        user_id=user.id,
        email=user.email,
        is_admin=user.is_admin,
        ttl=ttl,
    )
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.env == "prod",
    )
    return SessionResponse(user=UserOut.model_validate(user), token=token)


@router.post("/sign-up", response_model=SessionResponse, status_code=HTTP_201_CREATED)
async def sign_up(
    body: SignUpRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
    settings: Settings = Depends(settings_dep),
) -> SessionResponse:
    user = await AccountService(session, hasher=hasher).sign_up(
        email=body.email, password=body.password, name=body.name
    )
    return _start_session(response, user, settings)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    body: SignInRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
    settings: Settings = Depends(settings_dep),
) -> SessionResponse:
    user = await AccountService(session, hasher=hasher).authenticate_user(
        email=body.email, password=body.password
    )
    return _start_session(response, user, settings)


@router.post("/sign-out")
async def sign_out(response: Response, settings: Settings = Depends(settings_dep)) -> dict[str, bool]:
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True}


@router.get("/session", response_model=SessionUser)
async def get_session(
    principal: UserPrincipal | Anonymous = Depends(current_principal),
) -> SessionUser:
    if not isinstance(principal, UserPrincipal):
        raise AuthenticationRequired("Authentication required")
    return SessionUser(id=principal.id, email=principal.email, is_admin=principal.is_admin)
