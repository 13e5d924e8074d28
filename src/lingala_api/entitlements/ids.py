"""
lingala_api.entitlements.ids

Request preconditions checked before any policy decision.

Responsibilities:
- Parse path identifiers (positive decimal integers that fit a 64-bit key).
- Normalize admin list pagination (`limit`, `offset`).
"""

from __future__ import annotations

import re

from lingala_api.errors import InvalidInput

_DECIMAL = re.compile(r"[0-9]+")
_SIGNED_DECIMAL = re.compile(r"-?[0-9]+")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Largest value a signed 64-bit INTEGER column can hold.
MAX_ID = 2**63 - 1


def parse_id(raw: str | int | None, *, label: str = "ID") -> int:
    """Return `raw` as a positive int or raise `InvalidInput(INVALID_ID)`.

    Accepts ints (JSON bodies) and decimal strings (path segments); rejects
    signs, whitespace, floats, hex and booleans.
    """
    if isinstance(raw, bool):
        raise InvalidInput(f"Invalid {label}", code="INVALID_ID")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _DECIMAL.fullmatch(raw):
        value = int(raw)
    else:
        raise InvalidInput(f"Invalid {label}", code="INVALID_ID")
    if value <= 0 or value > MAX_ID:
        raise InvalidInput(f"Invalid {label}", code="INVALID_ID")
    return value


def page_params(limit: str | None, offset: str | None) -> tuple[int, int]:
    if limit is None or limit == "":
        parsed_limit = DEFAULT_LIMIT
    elif _SIGNED_DECIMAL.fullmatch(limit):
        parsed_limit = min(max(int(limit), 1), MAX_LIMIT)
    else:
        raise InvalidInput("Invalid limit parameter", code="INVALID_LIMIT")

    if offset is None or offset == "":
        parsed_offset = 0
    elif _DECIMAL.fullmatch(offset) and int(offset) <= MAX_ID:
        parsed_offset = int(offset)
    else:
        raise InvalidInput("Invalid offset parameter", code="INVALID_OFFSET")

    return parsed_limit, parsed_offset
