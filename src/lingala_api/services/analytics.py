from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Enrollment, User
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.db.repositories.progress import ProgressRepo
from lingala_api.db.repositories.users import UserRepo

RECENT_LIMIT = 5


@dataclass(frozen=True, slots=True)
class Overview:
    total_users: int
    total_courses: int
    published_courses: int
    total_enrollments: int
    active_enrollments: int
    completed_lessons: int
    recent_users: list[User]
    recent_enrollments: list[Enrollment]


async def overview(session: AsyncSession) -> Overview:
    users = UserRepo(session)
    courses = CourseRepo(session)
    enrollments = EnrollmentRepo(session)
    return Overview(
        total_users=await users.count(),
        total_courses=await courses.count(),
        published_courses=await courses.count(published_only=True),
        total_enrollments=await enrollments.count(),
        # Active means not yet completed.
        active_enrollments=await enrollments.count(active_only=True),
        completed_lessons=await ProgressRepo(session).count_completed(),
        recent_users=await users.recent(RECENT_LIMIT),
        recent_enrollments=await enrollments.recent(RECENT_LIMIT),
    )
