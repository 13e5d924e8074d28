"""
lingala_api.auth.tokens

End-user session token issuing and validation.

Responsibilities:
- Issue signed session tokens carrying the user id, email and admin flag.
- Decode tokens with strict claim requirements (iss/aud/exp/iat/sub).

Note:
- Tokens are stateless; sign-out clears the cookie and the token ages out by TTL.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from lingala_api.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str


class SessionTokenError(Exception):
    pass


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.session_alg,
        issuer=settings.session_issuer,
        audience=settings.session_audience,
        secret=settings.session_secret,
    )


def issue_session_token(
    *,
    cfg: JwtConfig,
    user_id: str,
    email: str,
    is_admin: bool,
    ttl: timedelta = timedelta(days=7),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": user_id,
        "email": email,
        "is_admin": is_admin,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_session_token(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={"require": ["exp", "iat", "iss", "aud", "sub"]},
        )
    except InvalidTokenError as e:
        raise SessionTokenError(str(e)) from e
