from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session
from lingala_api.api.schemas import ApiModel, MaterialOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound

router = APIRouter(prefix="/api/admin/lesson-materials", tags=["admin-materials"])


class MaterialCreateRequest(ApiModel):
    lesson_id: int | str | None = None
    title: str | None = None
    type: str | None = None
    url: str | None = None


@router.post("", response_model=MaterialOut, status_code=HTTP_201_CREATED)
async def create_material(
    body: MaterialCreateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON_MATERIAL, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> MaterialOut:
    if body.lesson_id is None or body.lesson_id == "":
        raise InvalidInput("Lesson ID is required", code="MISSING_LESSON_ID")
    lesson_id = parse_id(body.lesson_id, label="lesson ID")
    repo = LessonRepo(session)
    if await repo.get(lesson_id) is None:
        raise NotFound("Lesson not found", code="LESSON_NOT_FOUND")
    material = await repo.add_material(lesson_id=lesson_id, title=body.title, type=body.type, url=body.url)
    await session.commit()
    return MaterialOut.model_validate(material)


@router.delete("/{material_id}")
async def delete_material(
    material_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.LESSON_MATERIAL, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    repo = LessonRepo(session)
    material = await repo.get_material(parse_id(material_id, label="material ID"))
    if material is None:
        raise NotFound("Material not found", code="MATERIAL_NOT_FOUND")
    await repo.delete_material(material)
    await session.commit()
    return {"message": "Material deleted successfully"}
