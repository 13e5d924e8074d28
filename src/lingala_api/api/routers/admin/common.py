from __future__ import annotations

from lingala_api.errors import InvalidInput


def require_text(value: str | None, *, code: str, message: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(message, code=code)
    return value.strip()
