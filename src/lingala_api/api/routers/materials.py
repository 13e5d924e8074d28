from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep
from lingala_api.api.schemas import MaterialOut
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.ids import parse_id

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("/{lesson_id}", response_model=list[MaterialOut])
async def list_lesson_materials(
    lesson_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> list[MaterialOut]:
    access = await gate.read_materials(principal, parse_id(lesson_id, label="lesson ID"))
    materials = await LessonRepo(session).list_materials(access.lesson.id)
    return [MaterialOut.model_validate(m) for m in materials]
