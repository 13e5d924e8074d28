"""
lingala_api.api.schemas

Response/request models shared by routers.

Responsibilities:
- Render ORM rows as camelCase JSON (`from_attributes` + alias generator).
- Keep credential columns (password hashes, session tokens) out of every response.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CourseOut(ApiModel):
    id: int
    title: str
    description: str | None = None
    level: str | None = None
    language: str | None = None
    source_language: str
    thumbnail_url: str | None = None
    price: Decimal | None = None
    is_published: bool
    created_at: datetime
    updated_at: datetime


class CourseSummaryOut(CourseOut):
    module_count: int
    lesson_count: int


class ModuleOut(ApiModel):
    id: int
    course_id: int
    title: str
    description: str | None = None
    order_index: int | None = None
    source_language: str
    created_at: datetime


class LessonOut(ApiModel):
    id: int
    module_id: int
    title: str
    content: str | None = None
    video_url: str | None = None
    order_index: int | None = None
    duration_minutes: int | None = None
    free_preview: bool
    source_language: str
    created_at: datetime


class LessonProgressOut(ApiModel):
    completed: bool
    completed_at: datetime | None = None
    last_position_seconds: int
    progress_percentage: int


class LessonWithProgressOut(LessonOut):
    progress: LessonProgressOut | None = None


class ModuleWithLessonsOut(ModuleOut):
    lessons: list[LessonWithProgressOut]


class CourseStructureOut(ApiModel):
    course: CourseOut
    modules: list[ModuleWithLessonsOut]


class MaterialOut(ApiModel):
    id: int
    lesson_id: int
    title: str | None = None
    type: str | None = None
    url: str | None = None
    created_at: datetime


class QuizQuestionOut(ApiModel):
    id: int
    quiz_id: int
    question_text: str
    question_type: str
    correct_answer: str
    options: list[Any] | None = None
    order_index: int | None = None
    created_at: datetime


class QuizOut(ApiModel):
    id: int
    lesson_id: int
    title: str
    description: str | None = None
    passing_score: int
    created_at: datetime


class QuizWithQuestionsOut(QuizOut):
    questions: list[QuizQuestionOut]


class UserOut(ApiModel):
    id: str
    email: str
    name: str | None = None
    is_admin: bool
    preferred_language: str
    created_at: datetime
    updated_at: datetime


class AdminOut(ApiModel):
    id: str
    email: str
    name: str
    role: str
    avatar_url: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime


class EnrollmentOut(ApiModel):
    id: int
    user_id: str
    course_id: int
    enrolled_at: datetime
    completed_at: datetime | None = None


class LastViewedLessonOut(ApiModel):
    lesson_id: int
    lesson_title: str
    module_id: int


class EnrollmentWithCourseOut(EnrollmentOut):
    course: CourseOut
    last_viewed_lesson: LastViewedLessonOut | None = None


class ProgressOut(ApiModel):
    id: int
    user_id: str
    lesson_id: int
    current_time_seconds: int
    duration_seconds: int
    progress_percentage: int
    is_completed: bool
    watch_time_seconds: int
    completed_at: datetime | None = None
    updated_at: datetime


class SubscriptionOut(ApiModel):
    id: int
    status: str | None = None
    plan_type: str
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    stripe_subscription_id: str | None = None


class PaymentOut(ApiModel):
    id: int
    user_id: str
    stripe_session_id: str | None = None
    stripe_subscription_id: str | None = None
    amount: Decimal | None = None
    currency: str
    status: str | None = None
    description: str | None = None
    created_at: datetime


class MessageOut(ApiModel):
    message: str
