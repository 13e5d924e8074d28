"""
lingala_api.auth.resolver

Session resolver for end-user requests.

Responsibilities:
- Extract credentials from a request (bearer header first, then session cookie).
- Turn credentials into `UserPrincipal` or `Anonymous` without raising.
"""

from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request

from lingala_api.auth.models import ANONYMOUS, Anonymous, UserPrincipal
from lingala_api.auth.tokens import JwtConfig, SessionTokenError, decode_session_token


@dataclass(frozen=True, slots=True)
class RequestCredentials:
    bearer: str | None = None
    cookie: str | None = None

    @property
    def token(self) -> str | None:
        return self.bearer or self.cookie or None

    @classmethod
    def from_request(cls, request: Request, *, cookie_name: str) -> RequestCredentials:
        return cls(
            bearer=bearer_token(request.headers.get("authorization")),
            cookie=request.cookies.get(cookie_name),
        )


def bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


class SessionResolver:
    def __init__(self, cfg: JwtConfig) -> None:
        self._cfg = cfg

    def resolve(self, credentials: RequestCredentials) -> UserPrincipal | Anonymous:
        token = credentials.token
        if token is None:
            return ANONYMOUS
        try:
            payload = decode_session_token(cfg=self._cfg, token=token)
        except SessionTokenError:
            return ANONYMOUS

        subject = payload.get("sub")
        email = payload.get("email")
        if not isinstance(subject, str) or not subject or not isinstance(email, str):
            return ANONYMOUS
        return UserPrincipal(id=subject, email=email, is_admin=payload.get("is_admin") is True)


# --- Module Notes -----------------------------------------------------------
# No I/O happens here: a deleted user keeps a resolvable token until it expires,
# and any data access for that id finds nothing.
