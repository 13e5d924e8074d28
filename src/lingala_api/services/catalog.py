"""
lingala_api.services.catalog

Read models over the course catalog.

Responsibilities:
- Course listings with module/lesson counts (public: published only; admin: all).
- The ordered module/lesson tree of a course, optionally annotated with the
  caller's per-lesson progress.
- Enrollment listings with the last lesson the learner touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Course, Enrollment, Lesson, Module, Progress
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.db.repositories.progress import ProgressRepo
from lingala_api.errors import NotFound


@dataclass(frozen=True, slots=True)
class CourseSummary:
    course: Course
    module_count: int
    lesson_count: int


@dataclass(slots=True)
class ModuleTree:
    module: Module
    lessons: list[Lesson] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CourseTree:
    course: Course
    modules: list[ModuleTree]
    progress: dict[int, Progress]


@dataclass(frozen=True, slots=True)
class EnrollmentView:
    enrollment: Enrollment
    last_viewed: Lesson | None


def _ordered(items):
    # Unordered rows (order_index NULL) go last, ties broken by id.
    return sorted(items, key=lambda x: (x.order_index is None, x.order_index or 0, x.id))


class CatalogService:
    def __init__(self, session: AsyncSession) -> None:
        self._courses = CourseRepo(session)
        self._enrollments = EnrollmentRepo(session)
        self._progress = ProgressRepo(session)

    async def summaries(self, *, published_only: bool) -> list[CourseSummary]:
        courses = (
            await self._courses.list_published() if published_only else await self._courses.list_all()
        )
        counts = await self._courses.structure_counts([c.id for c in courses])
        return [
            CourseSummary(course=c, module_count=counts[c.id][0], lesson_count=counts[c.id][1])
            for c in courses
        ]

    async def tree(self, course_id: int, *, user_id: str | None = None) -> CourseTree:
        course = await self._courses.get_with_structure(course_id)
        if course is None:
            raise NotFound("Course not found", code="COURSE_NOT_FOUND")
        modules = [ModuleTree(module=m, lessons=_ordered(m.lessons)) for m in _ordered(course.modules)]

        progress: dict[int, Progress] = {}
        if user_id is not None:
            lesson_ids = [lesson.id for tree in modules for lesson in tree.lessons]
            rows = await self._progress.list_for_lessons(user_id=user_id, lesson_ids=lesson_ids)
            progress = {row.lesson_id: row for row in rows}
        return CourseTree(course=course, modules=modules, progress=progress)

    async def enrollments_for(self, user_id: str) -> list[EnrollmentView]:
        views = []
        for enrollment in await self._enrollments.list_for_user(user_id):
            last = await self._progress.last_viewed_in_course(
                user_id=user_id, course_id=enrollment.course_id
            )
            views.append(EnrollmentView(enrollment=enrollment, last_viewed=last))
        return views
