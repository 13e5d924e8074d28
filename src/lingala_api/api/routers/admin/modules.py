from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session
from lingala_api.api.routers.admin.common import require_text
from lingala_api.api.schemas import ApiModel, ModuleOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.models import Module
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.modules import ModuleRepo
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound
from lingala_api.services.reorder import apply_reorder, parse_updates

router = APIRouter(prefix="/api/admin/modules", tags=["admin-modules"])


class ModuleCreateRequest(ApiModel):
    course_id: int | str | None = None
    title: str | None = None
    description: str | None = None
    order_index: int | None = None
    source_language: str | None = None


class ModuleUpdateRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    order_index: int | None = None
    source_language: str | None = None


class ReorderResponse(ApiModel):
    message: str
    updated_count: int


async def _module_or_404(repo: ModuleRepo, raw_id: str) -> Module:
    module = await repo.get(parse_id(raw_id, label="module ID"))
    if module is None:
        raise NotFound("Module not found", code="MODULE_NOT_FOUND")
    return module


@router.post("", response_model=ModuleOut, status_code=HTTP_201_CREATED)
async def create_module(
    body: ModuleCreateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.MODULE, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> ModuleOut:
    if body.course_id is None:
        raise InvalidInput("Course ID is required", code="MISSING_COURSE_ID")
    course_id = parse_id(body.course_id, label="course ID")
    title = require_text(body.title, code="MISSING_TITLE", message="Valid title is required")
    course = await CourseRepo(session).get(course_id)
    if course is None:
        raise NotFound("Course not found", code="COURSE_NOT_FOUND")

    repo = ModuleRepo(session)
    order_index = body.order_index
    if order_index is None:
        order_index = await repo.next_order_index(course_id)
    module = await repo.create(
        course_id=course_id,
        title=title,
        description=body.description,
        order_index=order_index,
        source_language=body.source_language or course.source_language,
    )
    await session.commit()
    return ModuleOut.model_validate(module)


@router.patch("/reorder", response_model=ReorderResponse)
async def reorder_modules(
    body: Any = Body(default=None),
    _: AdminPrincipal = Depends(require_admin(ResourceKind.MODULE, Action.REORDER)),
    session: AsyncSession = Depends(db_session),
) -> ReorderResponse:
    updates = parse_updates(body)
    updated = await apply_reorder(session, updates, ModuleRepo(session).set_order_index, entity="module")
    return ReorderResponse(message="Modules reordered successfully", updated_count=updated)


@router.patch("/{module_id}", response_model=ModuleOut)
async def update_module(
    module_id: str,
    body: ModuleUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.MODULE, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
) -> ModuleOut:
    repo = ModuleRepo(session)
    module = await _module_or_404(repo, module_id)
    fields = body.model_dump(exclude_unset=True)
    if "title" in fields:
        fields["title"] = require_text(fields["title"], code="MISSING_TITLE", message="Valid title is required")
    await repo.update(module, **fields)
    await session.commit()
    return ModuleOut.model_validate(module)


@router.delete("/{module_id}")
async def delete_module(
    module_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.MODULE, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    repo = ModuleRepo(session)
    module = await _module_or_404(repo, module_id)
    deleted_lessons = await repo.delete(module)
    await session.commit()
    return {
        "message": "Module deleted successfully",
        "module": ModuleOut.model_validate(module).model_dump(by_alias=True, mode="json"),
        "deletedLessons": deleted_lessons,
    }
