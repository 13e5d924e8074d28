"""
lingala_api.billing.webhooks

Stripe webhook verification and event ingestion.

Responsibilities:
- Verify the `Stripe-Signature` header (HMAC-SHA256 over "<timestamp>.<body>").
- Record checkout payments and mirror subscription lifecycle into `subscriptions`.
- Acknowledge event types this service does not act on.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.repositories.payments import PaymentRepo
from lingala_api.db.repositories.subscriptions import SubscriptionRepo
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)

PAYMENT_DESCRIPTION = "Monthly subscription payment"


class WebhookSignatureError(Exception):
    pass


def _parse_signature_header(header: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as e:
                raise WebhookSignatureError("Malformed signature timestamp") from e
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed signature header")
    return timestamp, signatures


def sign_payload(payload: bytes, *, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_event(
    payload: bytes,
    header: str | None,
    *,
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> dict[str, Any]:
    """Return the decoded event when the signature is valid and fresh."""
    if not header:
        raise WebhookSignatureError("No signature found")
    timestamp, signatures = _parse_signature_header(header)
    expected = sign_payload(payload, secret=secret, timestamp=timestamp)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("Signature mismatch")
    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance_seconds:
        raise WebhookSignatureError("Timestamp outside tolerance")
    try:
        event = json.loads(payload)
    except ValueError as e:
        raise WebhookSignatureError("Payload is not valid JSON") from e
    if not isinstance(event, dict):
        raise WebhookSignatureError("Payload is not an event object")
    return event


def _from_unix(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC).replace(tzinfo=None)


def _period(subscription: dict[str, Any], name: str) -> datetime | None:
    # Newer API versions moved billing periods onto the subscription items.
    if subscription.get(name) is not None:
        return _from_unix(subscription[name])
    items = (subscription.get("items") or {}).get("data") or []
    if items and items[0].get(name) is not None:
        return _from_unix(items[0][name])
    return None


def _price_id(subscription: dict[str, Any]) -> str | None:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    price = items[0].get("price") or {}
    return price.get("id")


class WebhookProcessor:
    def __init__(self, session: AsyncSession, *, default_plan_type: str = "monthly_premium") -> None:
        self._session = session
        self._payments = PaymentRepo(session)
        self._subscriptions = SubscriptionRepo(session)
        self._default_plan_type = default_plan_type

    async def handle(self, event: dict[str, Any]) -> bool:
        """Apply one event; returns False for event types that are only acknowledged."""
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        handlers = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.created": self._subscription_created,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
        }
        handler = handlers.get(str(event_type))
        if handler is None:
            log.info("webhook_event_ignored", event_type=event_type, event_id=event.get("id"))
            return False
        await handler(obj)
        await self._session.commit()
        log.info("webhook_event_processed", event_type=event_type, event_id=event.get("id"))
        return True

    async def _checkout_completed(self, checkout: dict[str, Any]) -> None:
        user_id = (checkout.get("metadata") or {}).get("userId")
        if not user_id:
            log.warning("webhook_missing_user", event_object=checkout.get("id"))
            return
        if checkout.get("mode") != "subscription" or not checkout.get("subscription"):
            return
        amount_total = checkout.get("amount_total") or 0
        await self._payments.create(
            user_id=user_id,
            stripe_session_id=checkout.get("id"),
            stripe_subscription_id=str(checkout["subscription"]),
            amount=Decimal(int(amount_total)) / 100,
            currency=checkout.get("currency") or "usd",
            status="succeeded",
            description=PAYMENT_DESCRIPTION,
        )

    async def _subscription_created(self, subscription: dict[str, Any]) -> None:
        metadata = subscription.get("metadata") or {}
        user_id = metadata.get("userId")
        if not user_id:
            log.warning("webhook_missing_user", event_object=subscription.get("id"))
            return
        await self._subscriptions.create(
            user_id=user_id,
            stripe_customer_id=subscription.get("customer"),
            stripe_subscription_id=subscription.get("id"),
            stripe_price_id=_price_id(subscription),
            status=subscription.get("status"),
            plan_type=metadata.get("planType") or self._default_plan_type,
            current_period_start=_period(subscription, "current_period_start"),
            current_period_end=_period(subscription, "current_period_end"),
        )

    async def _subscription_updated(self, subscription: dict[str, Any]) -> None:
        subscription_id = subscription.get("id")
        if not subscription_id or not subscription.get("status"):
            return
        updated = await self._subscriptions.update_by_stripe_id(
            subscription_id,
            status=subscription["status"],
            current_period_start=_period(subscription, "current_period_start"),
            current_period_end=_period(subscription, "current_period_end"),
        )
        if not updated:
            log.warning("webhook_unknown_subscription", stripe_subscription_id=subscription_id)

    async def _subscription_deleted(self, subscription: dict[str, Any]) -> None:
        subscription_id = subscription.get("id")
        if not subscription_id:
            return
        await self._subscriptions.update_by_stripe_id(subscription_id, status="canceled")
