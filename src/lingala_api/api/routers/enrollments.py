from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep
from lingala_api.api.schemas import (
    CourseOut,
    EnrollmentOut,
    EnrollmentWithCourseOut,
    LastViewedLessonOut,
)
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.types import ResourceKind
from lingala_api.services.catalog import CatalogService

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


@router.get("", response_model=list[EnrollmentWithCourseOut])
async def list_my_enrollments(
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> list[EnrollmentWithCourseOut]:
    user = gate.owner(principal, ResourceKind.ENROLLMENT)
    views = await CatalogService(session).enrollments_for(user.id)
    out = []
    for view in views:
        last = view.last_viewed
        out.append(
            EnrollmentWithCourseOut(
                **EnrollmentOut.model_validate(view.enrollment).model_dump(),
                course=CourseOut.model_validate(view.enrollment.course),
                last_viewed_lesson=(
                    LastViewedLessonOut(
                        lesson_id=last.id, lesson_title=last.title, module_id=last.module_id
                    )
                    if last is not None
                    else None
                ),
            )
        )
    return out
