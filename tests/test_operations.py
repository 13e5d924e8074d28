"""
tests.test_operations

Operational surface: sample catalog seeding, the admin provisioning command,
log redaction, and request-id handling.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from lingala_api.api.__main__ import ADMIN_PASSWORD_ENV, _create_admin, build_parser
from lingala_api.db.init_db import seed_sample_catalog
from lingala_api.observability.logging import redact_sensitive
from lingala_api.settings import Settings
from tests.conftest import bearer


@pytest.mark.asyncio
async def test_sample_catalog_is_browsable(app: FastAPI, client: httpx.AsyncClient) -> None:
    async with app.state.sessionmaker() as session:
        course = await seed_sample_catalog(session)

    r = await client.get("/api/courses")
    assert [c["title"] for c in r.json()] == ["Beginner Lingala - Essential Phrases"]
    assert r.json()[0]["lessonCount"] == 3

    r = await client.get(f"/api/courses/{course.id}/structure")
    assert r.status_code == 200
    (module,) = r.json()["modules"]
    assert module["title"] == "Greetings and Basic Conversations"
    assert [lesson["freePreview"] for lesson in module["lessons"]] == [True, False, False]
    assert [lesson["durationMinutes"] for lesson in module["lessons"]] == [10, 15, 12]


@pytest.mark.asyncio
async def test_create_admin_command(
    settings: Settings, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(ADMIN_PASSWORD_ENV, "long-enough-secret")
    args = build_parser().parse_args(
        ["create-admin", "--email", "Ops@Example.com", "--name", "Ops", "--role", "super_admin"]
    )
    assert await _create_admin(settings, args) == 0
    # A second run reports the conflict instead of raising.
    assert await _create_admin(settings, args) == 1

    r = await client.post(
        "/api/admin/auth/login", json={"email": "ops@example.com", "password": "long-enough-secret"}
    )
    assert r.status_code == 200
    r = await client.get("/api/admin/auth/me", headers=bearer(r.json()["token"]))
    assert r.json()["role"] == "super_admin"


def test_parser_defaults_to_serve() -> None:
    assert build_parser().parse_args([]).command is None
    with pytest.raises(SystemExit):
        build_parser().parse_args(["create-admin", "--email", "a@b.c", "--name", "x", "--role", "owner"])


def test_redaction_reaches_nested_payloads() -> None:
    event = redact_sensitive(
        None,
        "info",
        {
            "event": "webhook_event_processed",
            "admin_token": "abc",
            "payload": {"metadata": {"userId": "u1", "client_secret": "cs_1"}},
            "items": [{"password": "p"}],
        },
    )
    assert event["admin_token"] == "[REDACTED]"
    assert event["payload"]["metadata"] == {"userId": "u1", "client_secret": "[REDACTED]"}
    assert event["items"] == [{"password": "[REDACTED]"}]


@pytest.mark.asyncio
async def test_request_id_is_minted_when_absent_or_oversized(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert len(r.headers["x-request-id"]) == 32

    r = await client.get("/healthz", headers={"x-request-id": "x" * 500})
    assert r.headers["x-request-id"] != "x" * 500


@pytest.mark.asyncio
async def test_readiness_reports_components(client: httpx.AsyncClient) -> None:
    r = await client.get("/readyz")
    assert r.json() == {"status": "ready", "database": "ok", "sessionReaper": "running"}
