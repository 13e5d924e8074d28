"""
lingala_api.auth.passwords

Password hashing behind a small async protocol.

Responsibilities:
- `BcryptHasher` for real deployments; bcrypt runs in a worker thread so login
  bursts do not stall the event loop.
- `SimpleHasher` (unsalted SHA-256 with a "simple$" prefix) for test suites only.
"""

from __future__ import annotations

import hashlib
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


@runtime_checkable
class PasswordHasher(Protocol):
    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, digest: str) -> bool: ...


class BcryptHasher:
    async def hash(self, plain: str) -> str:
        raw = plain.encode("utf-8")
        return await to_thread.run_sync(lambda: bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8"))

    async def verify(self, plain: str, digest: str) -> bool:
        raw = plain.encode("utf-8")
        stored = digest.encode("utf-8")
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(raw, stored))
        except ValueError:
            # Malformed stored digest or over-long input.
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, digest: str) -> bool:
        if not digest.startswith(_SIMPLE_PREFIX):
            return False
        return digest == await self.hash(plain)


def get_hasher(name: str = "bcrypt") -> PasswordHasher:
    if name == "bcrypt":
        return BcryptHasher()
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
