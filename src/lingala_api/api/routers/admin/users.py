"""
lingala_api.api.routers.admin.users

End-user management for admins.

Responsibilities:
- Search/paginate users (total match count in `X-Total-Count`); read, update, delete a user.
- Enroll a user in a course on their behalf (admin enroll rule).
- Reset a user's password.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session, hasher_dep
from lingala_api.api.schemas import ApiModel, EnrollmentOut, UserOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.auth.passwords import PasswordHasher
from lingala_api.db.repositories.users import UserRepo
from lingala_api.entitlements.ids import page_params, parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound
from lingala_api.services.accounts import AccountService
from lingala_api.services.enrollments import EnrollmentService

router = APIRouter(prefix="/api/admin/users", tags=["admin-users"])

_ADMIN_ROLE_VALUES = {"admin", "1", "true"}
_USER_ROLE_VALUES = {"user", "0", "false"}


class UserUpdateRequest(ApiModel):
    name: str | None = None
    email: str | None = None
    is_admin: bool | None = None


class AdminEnrollRequest(ApiModel):
    course_id: int | str | None = None


class ResetPasswordRequest(ApiModel):
    new_password: str | None = None


def _role_filter(role: str | None) -> bool | None:
    if not role:
        return None
    value = role.strip().lower()
    if value in _ADMIN_ROLE_VALUES:
        return True
    if value in _USER_ROLE_VALUES:
        return False
    return None


@router.get("", response_model=list[UserOut])
async def list_users(
    response: Response,
    search: str | None = Query(default=None),
    role: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    _: AdminPrincipal = Depends(require_admin(ResourceKind.USER)),
    session: AsyncSession = Depends(db_session),
) -> list[UserOut]:
    page_limit, page_offset = page_params(limit, offset)
    users, total = await UserRepo(session).search(
        search=search.strip() if search else None,
        admins_only=_role_filter(role),
        limit=page_limit,
        offset=page_offset,
    )
    response.headers["X-Total-Count"] = str(total)
    return [UserOut.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.USER)),
    session: AsyncSession = Depends(db_session),
) -> UserOut:
    user = await UserRepo(session).get(user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    return UserOut.model_validate(user)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.USER, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
) -> UserOut:
    user = await AccountService(session, hasher=hasher).update_user(
        user_id, name=body.name, email=body.email, is_admin=body.is_admin
    )
    return UserOut.model_validate(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.USER, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
) -> dict[str, object]:
    user = await AccountService(session, hasher=hasher).delete_user(user_id)
    return {"message": "User deleted successfully", "userId": user.id}


@router.post("/{user_id}/enroll", status_code=HTTP_201_CREATED)
async def enroll_user(
    user_id: str,
    body: AdminEnrollRequest,
    principal: AdminPrincipal = Depends(require_admin(ResourceKind.ENROLLMENT, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> JSONResponse:
    if body.course_id is None or body.course_id == "":
        raise InvalidInput("Course ID is required", code="MISSING_COURSE_ID")
    course_id = parse_id(body.course_id, label="course ID")
    enrollment = await EnrollmentService(session).admin_enroll(
        principal, user_id=user_id, course_id=course_id
    )
    return JSONResponse(
        status_code=HTTP_201_CREATED,
        content={
            "message": "User enrolled successfully",
            "enrollment": EnrollmentOut.model_validate(enrollment).model_dump(by_alias=True, mode="json"),
        },
    )


@router.post("/{user_id}/reset-password")
async def reset_password(
    user_id: str,
    body: ResetPasswordRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.USER, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(hasher_dep),
) -> dict[str, object]:
    await AccountService(session, hasher=hasher).reset_password(user_id, body.new_password)
    return {"message": "Password reset successfully"}
