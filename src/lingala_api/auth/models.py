"""
lingala_api.auth.models

Principal variants injected into endpoints.

Responsibilities:
- Define the three caller identities: end user, admin, anonymous.
- Name the admin roles that grant access to the admin namespace.
"""

from __future__ import annotations

from dataclasses import dataclass

ADMIN_ROLES: frozenset[str] = frozenset({"admin", "super_admin"})


@dataclass(frozen=True, slots=True)
class UserPrincipal:
    """
    End user resolved from a session token.

    `is_admin` mirrors the account flag for display; it never opens the admin namespace.
    """

    id: str
    email: str
    is_admin: bool = False


@dataclass(frozen=True, slots=True)
class AdminPrincipal:
    """
    Admin resolved from a valid admin session token.
    """

    id: str
    email: str
    role: str

    @property
    def has_admin_role(self) -> bool:
        return self.role in ADMIN_ROLES


@dataclass(frozen=True, slots=True)
class Anonymous:
    pass


ANONYMOUS = Anonymous()

Principal = UserPrincipal | AdminPrincipal | Anonymous


def principal_kind(principal: Principal) -> str:
    if isinstance(principal, AdminPrincipal):
        return "admin"
    if isinstance(principal, UserPrincipal):
        return "user"
    return "anonymous"


# --- Module Notes -----------------------------------------------------------
# Principals are built per request and never persisted. Only the admin session
# store produces `AdminPrincipal`; only the session resolver produces `UserPrincipal`.
