"""
lingala_api.api.routers.admin.courses

Course management for admins.

Responsibilities:
- List every course (published or not) with module/lesson counts.
- Create, read (full tree), update, delete (cascading) and publish-toggle.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session
from lingala_api.api.routers.admin.common import require_text
from lingala_api.api.routers.courses import structure_out, summary_out
from lingala_api.api.schemas import ApiModel, CourseOut, CourseStructureOut, CourseSummaryOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.models import Course
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import NotFound
from lingala_api.observability.logging import get_logger
from lingala_api.services.catalog import CatalogService

log = get_logger(__name__)

router = APIRouter(prefix="/api/admin/courses", tags=["admin-courses"])

DEFAULT_LEVEL = "Beginner"
DEFAULT_LANGUAGE = "Lingala"
DEFAULT_PRICE = Decimal("29.99")


class CourseListResponse(ApiModel):
    courses: list[CourseSummaryOut]


class CourseCreateRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    level: str | None = None
    language: str | None = None
    source_language: str | None = None
    thumbnail_url: str | None = None
    price: Decimal | None = None
    is_published: bool = False


class CourseUpdateRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    level: str | None = None
    language: str | None = None
    source_language: str | None = None
    thumbnail_url: str | None = None
    price: Decimal | None = None
    is_published: bool | None = None


class CourseDeleteResponse(ApiModel):
    message: str
    deleted_counts: dict[str, int]


class PublishResponse(ApiModel):
    message: str
    course: CourseOut


async def _course_or_404(repo: CourseRepo, raw_id: str) -> Course:
    course = await repo.get(parse_id(raw_id, label="course ID"))
    if course is None:
        raise NotFound("Course not found", code="COURSE_NOT_FOUND")
    return course


@router.get("", response_model=CourseListResponse)
async def list_courses(
    _: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE)),
    session: AsyncSession = Depends(db_session),
) -> CourseListResponse:
    summaries = await CatalogService(session).summaries(published_only=False)
    return CourseListResponse(courses=[summary_out(s) for s in summaries])


@router.post("", response_model=CourseOut, status_code=HTTP_201_CREATED)
async def create_course(
    body: CourseCreateRequest,
    principal: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> CourseOut:
    title = require_text(body.title, code="MISSING_TITLE", message="Title and description are required")
    description = require_text(
        body.description, code="MISSING_DESCRIPTION", message="Title and description are required"
    )
    course = await CourseRepo(session).create(
        title=title,
        description=description,
        level=body.level or DEFAULT_LEVEL,
        language=body.language or DEFAULT_LANGUAGE,
        source_language=body.source_language or "en",
        thumbnail_url=body.thumbnail_url,
        price=body.price if body.price is not None else DEFAULT_PRICE,
        is_published=body.is_published,
    )
    await session.commit()
    log.info("course_created", course_id=course.id, admin_id=principal.id)
    return CourseOut.model_validate(course)


@router.get("/{course_id}", response_model=CourseStructureOut)
async def get_course(
    course_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE)),
    session: AsyncSession = Depends(db_session),
) -> CourseStructureOut:
    tree = await CatalogService(session).tree(parse_id(course_id, label="course ID"))
    return structure_out(tree)


@router.patch("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: str,
    body: CourseUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
) -> CourseOut:
    repo = CourseRepo(session)
    course = await _course_or_404(repo, course_id)
    fields = body.model_dump(exclude_unset=True)
    for name in ("title", "description"):
        if name in fields:
            fields[name] = require_text(
                fields[name], code="INVALID_FIELD", message=f"{name.capitalize()} cannot be empty"
            )
    await repo.update(course, **fields)
    await session.commit()
    return CourseOut.model_validate(course)


@router.delete("/{course_id}", response_model=CourseDeleteResponse)
async def delete_course(
    course_id: str,
    principal: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> CourseDeleteResponse:
    repo = CourseRepo(session)
    course = await _course_or_404(repo, course_id)
    counts = await repo.delete(course)
    await session.commit()
    log.info("course_deleted", course_id=course.id, admin_id=principal.id, **counts)
    return CourseDeleteResponse(message="Course deleted successfully", deleted_counts=counts)


@router.patch("/{course_id}/publish", response_model=PublishResponse)
async def toggle_publish(
    course_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.COURSE, Action.PUBLISH)),
    session: AsyncSession = Depends(db_session),
) -> PublishResponse:
    repo = CourseRepo(session)
    course = await _course_or_404(repo, course_id)
    await repo.update(course, is_published=not course.is_published)
    await session.commit()
    state = "published" if course.is_published else "unpublished"
    return PublishResponse(message=f"Course {state} successfully", course=CourseOut.model_validate(course))
