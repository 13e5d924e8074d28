"""
lingala_api.api.app

FastAPI app factory for the Lingala learning platform API.

Responsibilities:
- Build the FastAPI application and register routers, middleware and error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, admin
  session store and its reaper, payment provider HTTP client).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from datetime import timedelta

import httpx
from fastapi import FastAPI

from lingala_api.api.routers import (
    auth,
    courses,
    enrollments,
    health,
    materials,
    progress,
    stripe,
    subscription,
    user,
)
from lingala_api.api.routers.admin import analytics as admin_analytics
from lingala_api.api.routers.admin import auth as admin_auth
from lingala_api.api.routers.admin import courses as admin_courses
from lingala_api.api.routers.admin import lessons as admin_lessons
from lingala_api.api.routers.admin import materials as admin_materials
from lingala_api.api.routers.admin import modules as admin_modules
from lingala_api.api.routers.admin import payments as admin_payments
from lingala_api.api.routers.admin import quizzes as admin_quizzes
from lingala_api.api.routers.admin import users as admin_users
from lingala_api.auth.admin_sessions import AdminSessionStore
from lingala_api.auth.passwords import get_hasher
from lingala_api.billing.stripe_client import StripeClient, build_http_client
from lingala_api.db.init_db import init_db
from lingala_api.db.session import create_engine, create_sessionmaker
from lingala_api.errors import register_error_handlers
from lingala_api.observability.logging import configure_logging, get_logger
from lingala_api.observability.middleware import RequestContextMiddleware
from lingala_api.settings import Settings

log = get_logger(__name__)


def create_app(
    *, settings: Settings, stripe_transport: httpx.AsyncBaseTransport | None = None
) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        renderer=settings.log_renderer,
    )

    app = FastAPI(
        title="Lingala Learning Platform API",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router)
    app.include_router(courses.router)
    app.include_router(materials.router)
    app.include_router(progress.router)
    app.include_router(enrollments.router)
    app.include_router(subscription.router)
    app.include_router(stripe.router)
    app.include_router(user.router)

    app.include_router(admin_auth.router)
    app.include_router(admin_courses.router)
    app.include_router(admin_modules.router)
    app.include_router(admin_lessons.router)
    app.include_router(admin_materials.router)
    app.include_router(admin_quizzes.router)
    app.include_router(admin_quizzes.questions_router)
    app.include_router(admin_users.router)
    app.include_router(admin_payments.router)
    app.include_router(admin_analytics.router)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod schema is managed by Alembic migrations.
            await init_db(engine)

        app.state.password_hasher = get_hasher(settings.password_hasher)
        app.state.admin_sessions = AdminSessionStore(
            app.state.sessionmaker,
            ttl=timedelta(hours=settings.admin_session_ttl_hours),
            reap_interval_seconds=settings.admin_session_reap_interval_seconds,
        )
        app.state.admin_sessions.start_reaper()

        app.state.stripe_http = build_http_client(settings, transport=stripe_transport)
        app.state.stripe = StripeClient(settings=settings, http=app.state.stripe_http)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        store = getattr(app.state, "admin_sessions", None)
        if store is not None:
            await store.stop_reaper()
        http = getattr(app.state, "stripe_http", None)
        if http is not None:
            await http.aclose()
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# Route modules never reach into `app.state` directly; they go through the
# dependency providers in `lingala_api.api.deps`.
