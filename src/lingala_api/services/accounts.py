"""
lingala_api.services.accounts

Account lifecycle for end users and admins.

Responsibilities:
- End-user sign-up and credential checks (sessions are issued by the router).
- Admin creation and admin login (the session itself comes from the store).
- Password changes, admin password resets, profile and language updates.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.auth.passwords import BCRYPT_MAX_BYTES, PasswordHasher
from lingala_api.db.models import Admin, User
from lingala_api.db.repositories.admins import AdminRepo
from lingala_api.db.repositories.users import UserRepo
from lingala_api.errors import AuthenticationRequired, Conflict, InvalidInput, NotFound
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(raw: str | None, *, code: str = "INVALID_EMAIL") -> str:
    email = (raw or "").strip().lower()
    local, at, domain = email.partition("@")
    if not at or not local or "." not in domain:
        raise InvalidInput("A valid email address is required", code=code)
    return email


def check_password_strength(password: str | None, *, code: str = "INVALID_PASSWORD") -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", code=code
        )
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise InvalidInput(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long", code=code)
    return password


class AccountService:
    def __init__(self, session: AsyncSession, *, hasher: PasswordHasher) -> None:
        self._session = session
        self._hasher = hasher
        self._users = UserRepo(session)
        self._admins = AdminRepo(session)

    # -- end users --

    async def sign_up(self, *, email: str, password: str, name: str | None) -> User:
        email = normalize_email(email)
        check_password_strength(password)
        if await self._users.get_by_email(email) is not None:
            raise Conflict("Email already in use", code="EMAIL_EXISTS")
        try:
            user = await self._users.create(
                email=email, name=name, password_hash=await self._hasher.hash(password)
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict("Email already in use", code="EMAIL_EXISTS") from e
        log.info("user_signed_up", user_id=user.id)
        return user

    async def authenticate_user(self, *, email: str, password: str) -> User:
        user = await self._users.get_by_email(email.strip())
        if (
            user is None
            or not user.password_hash
            or not await self._hasher.verify(password, user.password_hash)
        ):
            raise AuthenticationRequired("Invalid email or password", code="INVALID_CREDENTIALS")
        return user

    async def change_password(self, *, user_id: str, current: str | None, new: str | None) -> None:
        if not current or not new:
            raise InvalidInput("Current password and new password are required")
        check_password_strength(new)
        user = await self._users.get(user_id)
        if user is None or not user.password_hash:
            raise InvalidInput("No password found for this account", code="NO_PASSWORD")
        if not await self._hasher.verify(current, user.password_hash):
            raise InvalidInput("Current password is incorrect", code="INVALID_CURRENT_PASSWORD")
        await self._users.update(user, password_hash=await self._hasher.hash(new))
        await self._session.commit()
        log.info("password_changed", user_id=user_id)

    async def set_language(self, *, user_id: str, language: str, supported: tuple[str, ...]) -> None:
        if language not in supported:
            raise InvalidInput("Invalid language", code="INVALID_LANGUAGE")
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        await self._users.update(user, preferred_language=language)
        await self._session.commit()

    # -- admin management of end users --

    async def update_user(
        self,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        is_admin: bool | None = None,
    ) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        fields: dict[str, object] = {}
        if name is not None:
            fields["name"] = name
        if email is not None:
            if not email.strip():
                raise InvalidInput("Email cannot be empty", code="INVALID_EMAIL")
            email = normalize_email(email)
            other = await self._users.get_by_email(email)
            if other is not None and other.id != user.id:
                raise Conflict("Email already in use", code="EMAIL_EXISTS")
            fields["email"] = email
        if is_admin is not None:
            fields["is_admin"] = is_admin
        await self._users.update(user, **fields)
        await self._session.commit()
        return user

    async def reset_password(self, user_id: str, new_password: str | None) -> None:
        if not new_password:
            raise InvalidInput("New password is required", code="MISSING_PASSWORD")
        check_password_strength(new_password, code="PASSWORD_TOO_SHORT")
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        await self._users.update(user, password_hash=await self._hasher.hash(new_password))
        await self._session.commit()
        log.info("password_reset_by_admin", user_id=user_id)

    async def delete_user(self, user_id: str) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        await self._users.delete(user)
        await self._session.commit()
        return user

    # -- admins --

    async def create_admin(
        self, *, email: str, password: str, name: str, role: str = "admin"
    ) -> Admin:
        email = normalize_email(email)
        check_password_strength(password)
        if await self._admins.get_by_email(email) is not None:
            raise Conflict("Admin already exists", code="EMAIL_EXISTS")
        admin = await self._admins.create(
            email=email, name=name, password_hash=await self._hasher.hash(password), role=role
        )
        await self._session.commit()
        log.info("admin_created", admin_id=admin.id, role=role)
        return admin

    async def authenticate_admin(self, *, email: str | None, password: str | None) -> Admin:
        if not email or not password:
            raise InvalidInput("Email and password are required", code="MISSING_CREDENTIALS")
        admin = await self._admins.get_by_email(email.strip())
        if (
            admin is None
            or not admin.is_active
            or not await self._hasher.verify(password, admin.password_hash)
        ):
            log.info("admin_login_failed")
            raise AuthenticationRequired("Invalid credentials", code="INVALID_CREDENTIALS")
        await self._admins.touch_login(admin)
        await self._session.commit()
        return admin
