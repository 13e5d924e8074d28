"""
tests.conftest

Shared fixtures: an app on a throwaway SQLite file, an in-process HTTP client,
and seed helpers that write rows directly through the repositories.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from lingala_api.api.app import create_app
from lingala_api.auth.tokens import issue_session_token, jwt_config
from lingala_api.db.models import Course, Enrollment, Lesson, Module, Subscription, User, utcnow
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.modules import ModuleRepo
from lingala_api.db.repositories.subscriptions import SubscriptionRepo
from lingala_api.db.repositories.users import UserRepo
from lingala_api.services.accounts import AccountService
from lingala_api.settings import Settings


class StripeStub:
    """`httpx.MockTransport` handler; tests register `(method, path) -> json` routes."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, body: dict[str, Any], status_code: int = 200) -> None:
        self.routes[(method, path)] = lambda _: httpx.Response(status_code, json=body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"message": "No such route"}})
        return handler(request)


class Seed:
    def __init__(self, app: FastAPI) -> None:
        self._app = app
        self._settings: Settings = app.state.settings

    def _session(self):
        return self._app.state.sessionmaker()

    async def course(self, *, title: str = "Lingala 101", published: bool = True) -> Course:
        async with self._session() as session:
            course = await CourseRepo(session).create(
                title=title, description="Basics", is_published=published
            )
            await session.commit()
            return course

    async def module(self, course_id: int, *, order_index: int = 0) -> Module:
        async with self._session() as session:
            module = await ModuleRepo(session).create(
                course_id=course_id, title="Greetings", order_index=order_index
            )
            await session.commit()
            return module

    async def lesson(self, module_id: int, *, free_preview: bool = False, order_index: int = 0) -> Lesson:
        async with self._session() as session:
            lesson = await LessonRepo(session).create(
                module_id=module_id,
                title="Mbote",
                order_index=order_index,
                free_preview=free_preview,
            )
            await session.commit()
            return lesson

    async def material(self, lesson_id: int) -> None:
        async with self._session() as session:
            await LessonRepo(session).add_material(
                lesson_id=lesson_id, title="Vocabulary", type="pdf", url="https://cdn.example/v.pdf"
            )
            await session.commit()

    async def user(self, email: str = "learner@example.com", *, is_admin: bool = False) -> User:
        async with self._session() as session:
            user = await UserRepo(session).create(
                email=email, name="Learner", password_hash=None, is_admin=is_admin
            )
            await session.commit()
            return user

    def user_token(self, user: User) -> str:
        return issue_session_token(
            cfg=jwt_config(self._settings),
            user_id=user.id,
            email=user.email,
            is_admin=user.is_admin,
            ttl=timedelta(hours=1),
        )

    async def subscription(
        self, user_id: str, *, status: str = "active", ends_in: timedelta = timedelta(days=30)
    ) -> Subscription:
        async with self._session() as session:
            row = await SubscriptionRepo(session).create(
                user_id=user_id,
                stripe_customer_id="cus_test",
                stripe_subscription_id=f"sub_{user_id[:8]}",
                stripe_price_id=None,
                status=status,
                plan_type="monthly_premium",
                current_period_start=utcnow() - timedelta(days=1),
                current_period_end=utcnow() + ends_in,
            )
            await session.commit()
            return row

    async def enrollment(self, user_id: str, course_id: int) -> Enrollment:
        async with self._session() as session:
            row = await EnrollmentRepo(session).create(user_id=user_id, course_id=course_id)
            await session.commit()
            return row

    async def admin_token(self, *, email: str = "admin@example.com", role: str = "admin") -> str:
        async with self._session() as session:
            admin = await AccountService(session, hasher=self._app.state.password_hasher).create_admin(
                email=email, password="correct-horse", name="Admin", role=role
            )
        row = await self._app.state.admin_sessions.create(
            admin_id=admin.id, ip_address="127.0.0.1", user_agent="pytest"
        )
        return row.token


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def stripe_stub() -> StripeStub:
    return StripeStub()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'lingala.db'}",
        password_hasher="simple",
        stripe_webhook_secret="whsec_test",
        admin_session_reap_interval_seconds=3600,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings: Settings, stripe_stub: StripeStub) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings, stripe_transport=httpx.MockTransport(stripe_stub))
    # httpx ASGITransport does not run lifespan events; drive them explicitly.
    await app.router.startup()
    try:
        yield app
    finally:
        await app.router.shutdown()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def seed(app: FastAPI) -> Seed:
    return Seed(app)
