"""
lingala_api.api.routers.progress

Learner progress endpoints (enrollment-gated).

Responsibilities:
- Course progress: per-lesson rows plus completed/total/percentage stats.
- Lesson progress: read and record playback position.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep
from lingala_api.api.schemas import ApiModel, ProgressOut
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.db.repositories.progress import ProgressRepo
from lingala_api.entitlements.gate import AccessGate, require_user
from lingala_api.entitlements.ids import parse_id
from lingala_api.services.progress import ProgressService

router = APIRouter(prefix="/api", tags=["progress"])


class ProgressStats(ApiModel):
    completed: int
    total: int
    percentage: int


class CourseProgressResponse(ApiModel):
    progress: list[ProgressOut]
    stats: ProgressStats


class LessonProgressRequest(ApiModel):
    current_time: float = Field(ge=0)
    duration: float = Field(ge=0)
    completed: bool = False
    watch_time_seconds: int = Field(default=0, ge=0)


class LessonProgressResponse(ApiModel):
    success: bool = True
    progress: ProgressOut


class LessonProgressState(ApiModel):
    progress: ProgressOut | None
    current_time: int
    duration: int
    progress_percentage: int
    is_completed: bool


@router.get("/progress/{course_id}", response_model=CourseProgressResponse)
async def get_course_progress(
    course_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> CourseProgressResponse:
    course = await gate.read_progress(principal, parse_id(course_id, label="course ID"))
    user = require_user(principal)
    summary = await ProgressService(session).for_course(user_id=user.id, course_id=course.id)
    return CourseProgressResponse(
        progress=[ProgressOut.model_validate(row) for row in summary.rows],
        stats=ProgressStats(
            completed=summary.completed, total=summary.total, percentage=summary.percentage
        ),
    )


@router.get("/lessons/{lesson_id}/progress", response_model=LessonProgressState)
async def get_lesson_progress(
    lesson_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> LessonProgressState:
    lid = parse_id(lesson_id, label="lesson ID")
    # Reading your own position in a lesson needs the same enrollment as writing it.
    access = await gate.update_progress(principal, lid)
    user = require_user(principal)
    row = await ProgressRepo(session).get(user_id=user.id, lesson_id=access.lesson.id)
    if row is None:
        return LessonProgressState(
            progress=None, current_time=0, duration=0, progress_percentage=0, is_completed=False
        )
    return LessonProgressState(
        progress=ProgressOut.model_validate(row),
        current_time=row.current_time_seconds,
        duration=row.duration_seconds,
        progress_percentage=row.progress_percentage,
        is_completed=row.is_completed,
    )


@router.post("/lessons/{lesson_id}/progress", response_model=LessonProgressResponse)
async def record_lesson_progress(
    lesson_id: str,
    body: LessonProgressRequest,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> LessonProgressResponse:
    access = await gate.update_progress(principal, parse_id(lesson_id, label="lesson ID"))
    user = require_user(principal)
    row = await ProgressService(session).record(
        user_id=user.id,
        lesson_id=access.lesson.id,
        current_time=body.current_time,
        duration=body.duration,
        completed=body.completed,
        watch_time_seconds=body.watch_time_seconds,
    )
    return LessonProgressResponse(progress=ProgressOut.model_validate(row))
