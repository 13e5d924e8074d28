from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session
from lingala_api.api.schemas import ApiModel, UserOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.entitlements.types import ResourceKind
from lingala_api.services.analytics import overview

router = APIRouter(prefix="/api/admin/analytics", tags=["admin-analytics"])


class RecentEnrollmentOut(ApiModel):
    id: int
    user_id: str
    course_id: int
    enrolled_at: datetime
    user_email: str
    user_name: str | None = None
    course_title: str


class OverviewOut(ApiModel):
    total_users: int
    total_courses: int
    published_courses: int
    total_enrollments: int
    active_enrollments: int
    completed_lessons: int
    recent_users: list[UserOut]
    recent_enrollments: list[RecentEnrollmentOut]


@router.get("/overview", response_model=OverviewOut)
async def analytics_overview(
    _: AdminPrincipal = Depends(require_admin(ResourceKind.ANALYTICS)),
    session: AsyncSession = Depends(db_session),
) -> OverviewOut:
    data = await overview(session)
    return OverviewOut(
        total_users=data.total_users,
        total_courses=data.total_courses,
        published_courses=data.published_courses,
        total_enrollments=data.total_enrollments,
        active_enrollments=data.active_enrollments,
        completed_lessons=data.completed_lessons,
        recent_users=[UserOut.model_validate(u) for u in data.recent_users],
        recent_enrollments=[
            RecentEnrollmentOut(
                id=e.id,
                user_id=e.user_id,
                course_id=e.course_id,
                enrolled_at=e.enrolled_at,
                user_email=e.user.email,
                user_name=e.user.name,
                course_title=e.course.title,
            )
            for e in data.recent_enrollments
        ],
    )
