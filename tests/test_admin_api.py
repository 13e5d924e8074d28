"""
tests.test_admin_api

Admin namespace: identity separation, role checks, content management,
reordering and admin-initiated enrollment.
"""

from __future__ import annotations

import httpx
import pytest

from lingala_api.db.repositories.enrollments import EnrollmentRepo
from tests.conftest import Seed, bearer


@pytest.mark.asyncio
async def test_admin_routes_reject_non_admin_identities(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.get("/api/admin/users")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"

    flagged = await seed.user("boss@example.com", is_admin=True)
    r = await client.get("/api/admin/users", headers=bearer(seed.user_token(flagged)))
    assert r.status_code == 401

    editor = await seed.admin_token(email="editor@example.com", role="editor")
    r = await client.get("/api/admin/users", headers=bearer(editor))
    assert r.status_code == 403
    assert r.json() == {"error": "Admin access required", "code": "ADMIN_REQUIRED"}


@pytest.mark.asyncio
async def test_admin_token_is_anonymous_on_public_routes(client: httpx.AsyncClient, seed: Seed) -> None:
    token = await seed.admin_token()
    r = await client.get("/api/enrollments", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["code"] == "AUTHENTICATION_REQUIRED"


@pytest.mark.asyncio
async def test_course_lifecycle(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token(role="super_admin"))

    r = await client.post("/api/admin/courses", json={"title": "Lingala 201"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "MISSING_DESCRIPTION"

    r = await client.post(
        "/api/admin/courses", json={"title": "Lingala 201", "description": "Verbs"}, headers=headers
    )
    assert r.status_code == 201
    course = r.json()
    assert course["level"] == "Beginner"
    assert course["isPublished"] is False

    r = await client.post(
        "/api/admin/modules", json={"courseId": course["id"], "title": "Verbs"}, headers=headers
    )
    assert r.status_code == 201
    module = r.json()
    assert module["orderIndex"] == 0

    r = await client.post(
        "/api/admin/lessons", json={"moduleId": module["id"], "title": "Kosala"}, headers=headers
    )
    assert r.status_code == 201
    lesson = r.json()

    r = await client.post(
        "/api/admin/lesson-materials",
        json={"lessonId": lesson["id"], "title": "Sheet", "type": "pdf", "url": "https://x/y.pdf"},
        headers=headers,
    )
    assert r.status_code == 201

    r = await client.get(f"/api/admin/courses/{course['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["modules"][0]["lessons"][0]["title"] == "Kosala"

    r = await client.patch(f"/api/admin/courses/{course['id']}/publish", headers=headers)
    assert r.json()["course"]["isPublished"] is True
    r = await client.get(f"/api/courses/{course['id']}")
    assert r.status_code == 200

    r = await client.delete(f"/api/admin/courses/{course['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["deletedCounts"] == {"lessonMaterials": 1, "lessons": 1, "modules": 1, "courses": 1}
    r = await client.get(f"/api/admin/courses/{course['id']}", headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_module_validation(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    r = await client.post("/api/admin/modules", json={"title": "x"}, headers=headers)
    assert r.json()["code"] == "MISSING_COURSE_ID"
    r = await client.post("/api/admin/modules", json={"courseId": 77, "title": "x"}, headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "COURSE_NOT_FOUND"


@pytest.mark.asyncio
async def test_reorder_skips_missing_rows(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course()
    modules = [await seed.module(course.id, order_index=i) for i in range(5)]
    assert modules[-1].id == 5

    r = await client.patch(
        "/api/admin/modules/reorder",
        json={"updates": [{"id": 5, "orderIndex": 2}, {"id": 9, "orderIndex": 1}]},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Modules reordered successfully", "updatedCount": 1}

    r = await client.get(f"/api/admin/courses/{course.id}", headers=headers)
    by_id = {m["id"]: m["orderIndex"] for m in r.json()["modules"]}
    assert by_id[5] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "code"),
    [
        ({}, "INVALID_FORMAT"),
        ({"updates": "nope"}, "INVALID_FORMAT"),
        ({"updates": []}, "EMPTY_ARRAY"),
        ({"updates": [{"id": "1", "orderIndex": 0}]}, "INVALID_ID"),
        ({"updates": [{"id": 1, "orderIndex": -1}]}, "INVALID_ORDER_INDEX"),
    ],
)
async def test_reorder_validation(client: httpx.AsyncClient, seed: Seed, body: dict, code: str) -> None:
    headers = bearer(await seed.admin_token())
    r = await client.patch("/api/admin/lessons/reorder", json=body, headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == code


@pytest.mark.asyncio
async def test_admin_enroll_refuses_existing_enrollment(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course()
    user = await seed.user()

    r = await client.post(f"/api/admin/users/{user.id}/enroll", json={"courseId": course.id}, headers=headers)
    assert r.status_code == 201

    r = await client.post(f"/api/admin/users/{user.id}/enroll", json={"courseId": course.id}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "User is already enrolled in this course", "code": "ALREADY_ENROLLED"}

    # Self-enroll on the same pair stays idempotent for a subscriber.
    await seed.subscription(user.id)
    r = await client.post(f"/api/courses/{course.id}/enroll", headers=bearer(seed.user_token(user)))
    assert r.status_code == 200

    r = await client.post("/api/admin/users/missing/enroll", json={"courseId": course.id}, headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_admin_enroll_losing_insert_race_reports_conflict(
    client: httpx.AsyncClient, seed: Seed, monkeypatch: pytest.MonkeyPatch
) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course()
    user = await seed.user()
    await seed.enrollment(user.id, course.id)

    async def not_enrolled_yet(self: EnrollmentRepo, *, user_id: str, course_id: int) -> bool:
        return False

    monkeypatch.setattr(EnrollmentRepo, "is_enrolled", not_enrolled_yet)
    r = await client.post(f"/api/admin/users/{user.id}/enroll", json={"courseId": course.id}, headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "ALREADY_ENROLLED"


@pytest.mark.asyncio
async def test_admin_enroll_ignores_subscription(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course(published=False)
    user = await seed.user()
    r = await client.post(f"/api/admin/users/{user.id}/enroll", json={"courseId": course.id}, headers=headers)
    assert r.status_code == 201
    assert r.json()["enrollment"]["userId"] == user.id


@pytest.mark.asyncio
async def test_user_management(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    first = await seed.user("ana@example.com")
    await seed.user("bo@example.com", is_admin=True)

    r = await client.get("/api/admin/users", params={"search": "ana"}, headers=headers)
    assert [u["email"] for u in r.json()] == ["ana@example.com"]
    assert r.headers["x-total-count"] == "1"

    r = await client.get("/api/admin/users", params={"limit": "1"}, headers=headers)
    assert len(r.json()) == 1
    assert r.headers["x-total-count"] == "2"

    r = await client.get("/api/admin/users", params={"offset": "9" * 23}, headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_OFFSET"

    r = await client.get("/api/admin/users", params={"role": "admin"}, headers=headers)
    assert [u["email"] for u in r.json()] == ["bo@example.com"]

    r = await client.get("/api/admin/users", params={"limit": "abc"}, headers=headers)
    assert r.json()["code"] == "INVALID_LIMIT"

    r = await client.patch(f"/api/admin/users/{first.id}", json={"email": "bo@example.com"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "EMAIL_EXISTS"

    r = await client.post(
        f"/api/admin/users/{first.id}/reset-password", json={"newPassword": "short"}, headers=headers
    )
    assert r.json()["code"] == "PASSWORD_TOO_SHORT"
    r = await client.post(
        f"/api/admin/users/{first.id}/reset-password", json={"newPassword": "long-enough"}, headers=headers
    )
    assert r.status_code == 200

    r = await client.delete(f"/api/admin/users/{first.id}", headers=headers)
    assert r.status_code == 200
    r = await client.get(f"/api/admin/users/{first.id}", headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_quizzes(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course()
    module = await seed.module(course.id)
    lesson = await seed.lesson(module.id)

    r = await client.post(
        "/api/admin/quizzes", json={"lessonId": lesson.id, "title": "Check"}, headers=headers
    )
    assert r.json()["code"] == "MISSING_PASSING_SCORE"

    r = await client.post(
        "/api/admin/quizzes", json={"lessonId": lesson.id, "title": "Check", "passingScore": 70}, headers=headers
    )
    assert r.status_code == 201
    quiz_id = r.json()["id"]

    r = await client.post(
        "/api/admin/quiz-questions",
        json={
            "quizId": quiz_id,
            "questionText": "Mbote means?",
            "questionType": "multiple_choice",
            "correctAnswer": "Hello",
            "options": ["Hello", "Bye"],
            "orderIndex": 0,
        },
        headers=headers,
    )
    assert r.status_code == 201

    r = await client.get(f"/api/admin/quizzes/{quiz_id}", headers=headers)
    assert r.json()["questions"][0]["options"] == ["Hello", "Bye"]


@pytest.mark.asyncio
async def test_analytics_and_payments(client: httpx.AsyncClient, seed: Seed) -> None:
    headers = bearer(await seed.admin_token())
    course = await seed.course()
    await seed.course(title="Draft", published=False)
    user = await seed.user()
    await seed.enrollment(user.id, course.id)

    r = await client.get("/api/admin/analytics/overview", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["totalUsers"] == 1
    assert body["totalCourses"] == 2
    assert body["publishedCourses"] == 1
    assert body["activeEnrollments"] == 1
    assert body["recentEnrollments"][0]["courseTitle"] == "Lingala 101"

    r = await client.get("/api/admin/payments", headers=headers)
    assert r.json() == []
