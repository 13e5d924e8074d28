"""
lingala_api.db.init_db

Schema creation and sample data for local development.

Responsibilities:
- Create tables in dev/test (production schema is owned by Alembic).
- Seed a small published course (one module, three lessons, first one free preview)
  so a fresh database has something to browse.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from lingala_api.db.base import Base
from lingala_api.db.models import Course
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.modules import ModuleRepo
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)

_SAMPLE_LESSONS = (
    (
        "Introduction to Lingala",
        "Welcome to your first Lingala lesson: a short tour of the language and where it is spoken.",
        10,
        True,
    ),
    (
        "Basic Greetings",
        "Essential greetings: Mbote (Hello), Sango nini? (How are you?), and more.",
        15,
        False,
    ),
    (
        "Introducing Yourself",
        "How to introduce yourself and ask for someone's name in Lingala.",
        12,
        False,
    ),
)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("schema_ready", tables=len(Base.metadata.tables))


async def seed_sample_catalog(session: AsyncSession) -> Course:
    course = await CourseRepo(session).create(
        title="Beginner Lingala - Essential Phrases",
        description=(
            "Learn the most important Lingala phrases for daily conversation. "
            "Perfect for beginners who want to start speaking right away."
        ),
        level="Beginner",
        language="Lingala",
        price=Decimal("29.99"),
        is_published=True,
    )
    module = await ModuleRepo(session).create(
        course_id=course.id,
        title="Greetings and Basic Conversations",
        description="Greeting people and holding a basic conversation",
        order_index=1,
    )
    lessons = LessonRepo(session)
    for index, (title, content, minutes, free_preview) in enumerate(_SAMPLE_LESSONS, start=1):
        await lessons.create(
            module_id=module.id,
            title=title,
            content=content,
            order_index=index,
            duration_minutes=minutes,
            free_preview=free_preview,
        )
    await session.commit()
    log.info("sample_catalog_seeded", course_id=course.id, lessons=len(_SAMPLE_LESSONS))
    return course
