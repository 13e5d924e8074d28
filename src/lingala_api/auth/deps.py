"""
lingala_api.auth.deps

FastAPI dependency functions for authentication and admin authorization.

Responsibilities:
- Resolve end-user credentials into `UserPrincipal | Anonymous` (never raises).
- Validate admin bearer tokens against the admin session store.
- Enforce the admin namespace through the policy engine via a dependency factory.
- Bind the caller identity into the logging context.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lingala_api.api.deps import admin_store_dep, gate_dep, settings_dep
from lingala_api.auth.admin_sessions import AdminSessionStatus, AdminSessionStore
from lingala_api.auth.models import (
    AdminPrincipal,
    Anonymous,
    Principal,
    UserPrincipal,
    principal_kind,
)
from lingala_api.auth.resolver import RequestCredentials, SessionResolver
from lingala_api.auth.tokens import jwt_config
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import AuthenticationRequired
from lingala_api.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def _bind_principal(principal: Principal) -> None:
    structlog.contextvars.bind_contextvars(
        principal_kind=principal_kind(principal),
        principal_id=getattr(principal, "id", None),
    )


def current_principal(
    request: Request,
    settings: Settings = Depends(settings_dep),
) -> UserPrincipal | Anonymous:
    credentials = RequestCredentials.from_request(request, cookie_name=settings.session_cookie_name)
    principal = SessionResolver(jwt_config(settings)).resolve(credentials)
    _bind_principal(principal)
    return principal


async def current_admin(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    store: AdminSessionStore = Depends(admin_store_dep),
) -> AdminPrincipal:
    if creds is None or not creds.credentials:
        raise AuthenticationRequired("Unauthorized", code="UNAUTHORIZED")

    result = await store.validate(creds.credentials)
    if result is AdminSessionStatus.EXPIRED:
        raise AuthenticationRequired("Session expired", code="SESSION_EXPIRED")
    if isinstance(result, AdminSessionStatus):
        raise AuthenticationRequired("Unauthorized", code="UNAUTHORIZED")

    admin = result.admin
    principal = AdminPrincipal(id=admin.id, email=admin.email, role=admin.role)
    _bind_principal(principal)
    return principal


def require_admin(resource: ResourceKind, action: Action = Action.READ):
    def _dep(
        principal: AdminPrincipal = Depends(current_admin),
        gate: AccessGate = Depends(gate_dep),
    ) -> AdminPrincipal:
        gate.admin(principal, resource, action)
        return principal

    return _dep


# --- Module Notes -----------------------------------------------------------
# The two session mechanisms do not interoperate: an end-user token on an admin
# route is unknown to the store (401), and an admin token on a public route fails
# signature checks and resolves to Anonymous.
