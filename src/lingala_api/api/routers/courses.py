"""
lingala_api.api.routers.courses

Public catalog and self-enrollment.

Responsibilities:
- List published courses and read a single course (published only).
- Return the ordered module/lesson tree, with the caller's progress when signed in.
- Self-enroll: 201 on a new enrollment, 200 when already enrolled.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_200_OK, HTTP_201_CREATED

from lingala_api.api.deps import db_session, gate_dep
from lingala_api.api.schemas import (
    CourseOut,
    CourseStructureOut,
    CourseSummaryOut,
    EnrollmentOut,
    LessonOut,
    LessonProgressOut,
    LessonWithProgressOut,
    ModuleOut,
    ModuleWithLessonsOut,
)
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.ids import parse_id
from lingala_api.services.catalog import CatalogService, CourseSummary, CourseTree
from lingala_api.services.enrollments import EnrollmentService

router = APIRouter(prefix="/api/courses", tags=["courses"])


def summary_out(summary: CourseSummary) -> CourseSummaryOut:
    return CourseSummaryOut(
        **CourseOut.model_validate(summary.course).model_dump(),
        module_count=summary.module_count,
        lesson_count=summary.lesson_count,
    )


def structure_out(tree: CourseTree) -> CourseStructureOut:
    modules = []
    for node in tree.modules:
        lessons = []
        for lesson in node.lessons:
            row = tree.progress.get(lesson.id)
            progress = (
                LessonProgressOut(
                    completed=row.is_completed,
                    completed_at=row.completed_at,
                    last_position_seconds=row.current_time_seconds,
                    progress_percentage=row.progress_percentage,
                )
                if row is not None
                else None
            )
            lessons.append(
                LessonWithProgressOut(**LessonOut.model_validate(lesson).model_dump(), progress=progress)
            )
        modules.append(
            ModuleWithLessonsOut(**ModuleOut.model_validate(node.module).model_dump(), lessons=lessons)
        )
    return CourseStructureOut(course=CourseOut.model_validate(tree.course), modules=modules)


@router.get("", response_model=list[CourseSummaryOut])
async def list_courses(session: AsyncSession = Depends(db_session)) -> list[CourseSummaryOut]:
    summaries = await CatalogService(session).summaries(published_only=True)
    return [summary_out(s) for s in summaries]


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(
    course_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    gate: AccessGate = Depends(gate_dep),
) -> CourseOut:
    course = await gate.read_course(principal, parse_id(course_id, label="course ID"))
    return CourseOut.model_validate(course)


@router.get("/{course_id}/structure", response_model=CourseStructureOut)
async def get_course_structure(
    course_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> CourseStructureOut:
    course = await gate.read_course(principal, parse_id(course_id, label="course ID"))
    user_id = principal.id if isinstance(principal, UserPrincipal) else None
    tree = await CatalogService(session).tree(course.id, user_id=user_id)
    return structure_out(tree)


@router.post("/{course_id}/enroll")
async def enroll(
    course_id: str,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
) -> JSONResponse:
    result = await EnrollmentService(session).self_enroll(
        principal, parse_id(course_id, label="course ID")
    )
    enrollment = EnrollmentOut.model_validate(result.enrollment).model_dump(by_alias=True, mode="json")
    if not result.created:
        return JSONResponse(
            status_code=HTTP_200_OK,
            content={"message": "Already enrolled in this course", "enrollment": enrollment},
        )
    return JSONResponse(
        status_code=HTTP_201_CREATED,
        content={"message": "Successfully enrolled in course", "enrollment": enrollment},
    )
