"""
tests.test_billing

Stripe bridge: form encoding, checkout/verification against a mocked Stripe API,
and signed webhook ingestion.
"""

from __future__ import annotations

import json
import time
from urllib.parse import parse_qs

import httpx
import pytest

from lingala_api.billing.stripe_client import encode_params
from lingala_api.billing.webhooks import WebhookSignatureError, sign_payload, verify_event
from tests.conftest import Seed, StripeStub, bearer

SECRET = "whsec_test"


def _signed(event: dict, *, secret: str = SECRET, timestamp: int | None = None) -> tuple[bytes, str]:
    payload = json.dumps(event).encode()
    ts = int(time.time()) if timestamp is None else timestamp
    return payload, f"t={ts},v1={sign_payload(payload, secret=secret, timestamp=ts)}"


def test_encode_params_flattens_nested_structures() -> None:
    pairs = encode_params(
        {"line_items": [{"price_data": {"unit_amount": 2999}, "quantity": 1}], "metadata": {"userId": "u"}}
    )
    assert ("line_items[0][price_data][unit_amount]", "2999") in pairs
    assert ("line_items[0][quantity]", "1") in pairs
    assert ("metadata[userId]", "u") in pairs


def test_verify_event_rejects_bad_signatures() -> None:
    payload, header = _signed({"type": "ping"})
    assert verify_event(payload, header, secret=SECRET)["type"] == "ping"

    with pytest.raises(WebhookSignatureError):
        verify_event(payload, None, secret=SECRET)
    with pytest.raises(WebhookSignatureError):
        verify_event(payload, header, secret="whsec_other")
    with pytest.raises(WebhookSignatureError):
        verify_event(payload + b" ", header, secret=SECRET)

    old_payload, old_header = _signed({"type": "ping"}, timestamp=int(time.time()) - 301)
    with pytest.raises(WebhookSignatureError):
        verify_event(old_payload, old_header, secret=SECRET)


@pytest.mark.asyncio
async def test_webhook_creates_subscription_that_unlocks_enrollment(
    client: httpx.AsyncClient, seed: Seed
) -> None:
    course = await seed.course()
    user = await seed.user()
    now = int(time.time())

    payload, header = _signed(
        {
            "id": "evt_1",
            "type": "customer.subscription.created",
            "data": {
                "object": {
                    "id": "sub_1",
                    "customer": "cus_1",
                    "status": "active",
                    "metadata": {"userId": user.id, "planType": "monthly_premium"},
                    "items": {
                        "data": [
                            {
                                "price": {"id": "price_1"},
                                "current_period_start": now - 60,
                                "current_period_end": now + 30 * 86400,
                            }
                        ]
                    },
                }
            },
        }
    )
    r = await client.post("/api/stripe/webhook", content=payload, headers={"stripe-signature": header})
    assert r.status_code == 200
    assert r.json() == {"received": True}

    r = await client.post(f"/api/courses/{course.id}/enroll", headers=bearer(seed.user_token(user)))
    assert r.status_code == 201

    payload, header = _signed(
        {"id": "evt_2", "type": "customer.subscription.deleted", "data": {"object": {"id": "sub_1"}}}
    )
    r = await client.post("/api/stripe/webhook", content=payload, headers={"stripe-signature": header})
    assert r.status_code == 200

    r = await client.get("/api/subscription/status", headers=bearer(seed.user_token(user)))
    assert r.json()["hasActiveSubscription"] is False


@pytest.mark.asyncio
async def test_webhook_records_checkout_payment(client: httpx.AsyncClient, seed: Seed) -> None:
    user = await seed.user()
    payload, header = _signed(
        {
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_1",
                    "mode": "subscription",
                    "subscription": "sub_1",
                    "amount_total": 2999,
                    "currency": "usd",
                    "metadata": {"userId": user.id, "courseId": "1"},
                }
            },
        }
    )
    r = await client.post("/api/stripe/webhook", content=payload, headers={"stripe-signature": header})
    assert r.status_code == 200

    admin = bearer(await seed.admin_token())
    r = await client.get("/api/admin/payments", headers=admin)
    payments = r.json()
    assert len(payments) == 1
    assert payments[0]["amount"] == "29.99"
    assert payments[0]["description"] == "Monthly subscription payment"


@pytest.mark.asyncio
async def test_webhook_with_bad_signature_is_rejected(client: httpx.AsyncClient) -> None:
    payload, header = _signed({"type": "ping"}, secret="whsec_wrong")
    r = await client.post("/api/stripe/webhook", content=payload, headers={"stripe-signature": header})
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_SIGNATURE"


@pytest.mark.asyncio
async def test_checkout_reuses_existing_customer(
    client: httpx.AsyncClient, seed: Seed, stripe_stub: StripeStub
) -> None:
    course = await seed.course()
    user = await seed.user()
    stripe_stub.on("GET", "/v1/customers", {"data": [{"id": "cus_existing"}]})
    stripe_stub.on("POST", "/v1/checkout/sessions", {"id": "cs_123", "url": "https://checkout/cs_123"})

    r = await client.post("/api/stripe/checkout", json={"courseId": course.id}, headers=bearer(seed.user_token(user)))
    assert r.status_code == 200
    assert r.json() == {"sessionId": "cs_123", "url": "https://checkout/cs_123"}

    checkout_request = stripe_stub.requests[-1]
    form = parse_qs(checkout_request.content.decode())
    assert form["customer"] == ["cus_existing"]
    assert form["mode"] == ["subscription"]
    assert form["line_items[0][price_data][unit_amount]"] == ["2999"]
    assert form["line_items[0][price_data][recurring][interval]"] == ["month"]
    assert form["metadata[userId]"] == [user.id]
    assert form["subscription_data[metadata][planType]"] == ["monthly_premium"]
    assert [req.method for req in stripe_stub.requests] == ["GET", "POST"]


@pytest.mark.asyncio
async def test_checkout_requires_session(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/stripe/checkout", json={"courseId": 1})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_stripe_failure_is_a_generic_500(
    client: httpx.AsyncClient, seed: Seed, stripe_stub: StripeStub
) -> None:
    course = await seed.course()
    user = await seed.user()
    stripe_stub.on("GET", "/v1/customers", {"error": {"message": "bad key"}}, status_code=401)

    r = await client.post("/api/stripe/checkout", json={"courseId": course.id}, headers=bearer(seed.user_token(user)))
    assert r.status_code == 500
    assert r.json()["error"] == "Payment provider request failed"


@pytest.mark.asyncio
async def test_verify_payment_checks_owner(
    client: httpx.AsyncClient, seed: Seed, stripe_stub: StripeStub
) -> None:
    course = await seed.course()
    user = await seed.user()
    headers = bearer(seed.user_token(user))

    stripe_stub.on("GET", "/v1/checkout/sessions/cs_open", {"id": "cs_open", "payment_status": "unpaid"})
    r = await client.post(
        "/api/stripe/verify-payment", json={"sessionId": "cs_open", "courseId": course.id}, headers=headers
    )
    assert r.status_code == 400
    assert r.json()["code"] == "PAYMENT_NOT_COMPLETED"

    stripe_stub.on(
        "GET",
        "/v1/checkout/sessions/cs_other",
        {"id": "cs_other", "payment_status": "paid", "metadata": {"userId": "someone-else"}},
    )
    r = await client.post(
        "/api/stripe/verify-payment", json={"sessionId": "cs_other", "courseId": course.id}, headers=headers
    )
    assert r.status_code == 403

    stripe_stub.on(
        "GET",
        "/v1/checkout/sessions/cs_mine",
        {"id": "cs_mine", "payment_status": "paid", "metadata": {"userId": user.id}},
    )
    r = await client.post(
        "/api/stripe/verify-payment", json={"sessionId": "cs_mine", "courseId": course.id}, headers=headers
    )
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["enrolled"] is False
