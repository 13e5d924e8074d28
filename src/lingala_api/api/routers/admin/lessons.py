from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session
from lingala_api.api.routers.admin.common import require_text
from lingala_api.api.routers.admin.modules import ReorderResponse
from lingala_api.api.schemas import ApiModel, LessonOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.models import Lesson
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.modules import ModuleRepo
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound
from lingala_api.services.reorder import apply_reorder, parse_updates

router = APIRouter(prefix="/api/admin/lessons", tags=["admin-lessons"])


class LessonCreateRequest(ApiModel):
    module_id: int | str | None = None
    title: str | None = None
    content: str | None = None
    video_url: str | None = None
    order_index: int | None = None
    duration_minutes: int | None = None
    free_preview: bool = False
    source_language: str | None = None


class LessonUpdateRequest(ApiModel):
    title: str | None = None
    content: str | None = None
    video_url: str | None = None
    order_index: int | None = None
    duration_minutes: int | None = None
    free_preview: bool | None = None
    source_language: str | None = None


async def _lesson_or_404(repo: LessonRepo, raw_id: str) -> Lesson:
    lesson = await repo.get(parse_id(raw_id, label="lesson ID"))
    if lesson is None:
        raise NotFound("Lesson not found", code="LESSON_NOT_FOUND")
    return lesson


@router.post("", response_model=LessonOut, status_code=HTTP_201_CREATED)
async def create_lesson(
    body: LessonCreateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> LessonOut:
    if body.module_id is None:
        raise InvalidInput("Module ID is required", code="MISSING_MODULE_ID")
    module_id = parse_id(body.module_id, label="module ID")
    title = require_text(body.title, code="MISSING_TITLE", message="Valid title is required")
    module = await ModuleRepo(session).get(module_id)
    if module is None:
        raise NotFound("Module not found", code="MODULE_NOT_FOUND")

    repo = LessonRepo(session)
    order_index = body.order_index
    if order_index is None:
        order_index = await repo.next_order_index(module_id)
    lesson = await repo.create(
        module_id=module_id,
        title=title,
        content=body.content,
        video_url=body.video_url,
        order_index=order_index,
        duration_minutes=body.duration_minutes,
        free_preview=body.free_preview,
        source_language=body.source_language or module.source_language,
    )
    await session.commit()
    return LessonOut.model_validate(lesson)


@router.patch("/reorder", response_model=ReorderResponse)
async def reorder_lessons(
    body: Any = Body(default=None),
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON, Action.REORDER)),
    session: AsyncSession = Depends(db_session),
) -> ReorderResponse:
    updates = parse_updates(body)
    updated = await apply_reorder(session, updates, LessonRepo(session).set_order_index, entity="lesson")
    return ReorderResponse(message="Lessons reordered successfully", updated_count=updated)


@router.patch("/{lesson_id}", response_model=LessonOut)
async def update_lesson(
    lesson_id: str,
    body: LessonUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
) -> LessonOut:
    repo = LessonRepo(session)
    lesson = await _lesson_or_404(repo, lesson_id)
    fields = body.model_dump(exclude_unset=True)
    if "title" in fields:
        fields["title"] = require_text(fields["title"], code="MISSING_TITLE", message="Valid title is required")
    if fields.get("free_preview") is None:
        fields.pop("free_preview", None)
    await repo.update(lesson, **fields)
    await session.commit()
    return LessonOut.model_validate(lesson)


@router.delete("/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    repo = LessonRepo(session)
    lesson = await _lesson_or_404(repo, lesson_id)
    await repo.delete(lesson)
    await session.commit()
    return {
        "message": "Lesson deleted successfully",
        "lesson": LessonOut.model_validate(lesson).model_dump(by_alias=True, mode="json"),
    }
