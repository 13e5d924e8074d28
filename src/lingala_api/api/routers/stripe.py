"""
lingala_api.api.routers.stripe

Subscription checkout and Stripe webhooks.

Responsibilities:
- Create a monthly subscription checkout session for the signed-in user.
- Verify a finished checkout belongs to the caller and report enrollment state.
- Ingest signed webhook events (no principal; the signature authenticates).
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep, settings_dep, stripe_dep
from lingala_api.api.schemas import ApiModel
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.billing.stripe_client import StripeClient
from lingala_api.billing.webhooks import WebhookProcessor, WebhookSignatureError, verify_event
from lingala_api.db.repositories.courses import CourseRepo
from lingala_api.db.repositories.enrollments import EnrollmentRepo
from lingala_api.db.repositories.users import UserRepo
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound
from lingala_api.observability.logging import get_logger
from lingala_api.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["billing"])


class CheckoutRequest(ApiModel):
    course_id: int | str


class CheckoutResponse(ApiModel):
    session_id: str
    url: str | None


class VerifyPaymentRequest(ApiModel):
    session_id: str
    course_id: int | str


class VerifyPaymentResponse(ApiModel):
    success: bool
    payment_status: str | None
    enrolled: bool
    enrollment_date: datetime | None


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
    stripe: StripeClient = Depends(stripe_dep),
) -> CheckoutResponse:
    user = gate.owner(principal, ResourceKind.SUBSCRIPTION, Action.CREATE)
    course_id = parse_id(body.course_id, label="course ID")
    if await CourseRepo(session).get(course_id) is None:
        raise NotFound("Course not found", code="COURSE_NOT_FOUND")

    account = await UserRepo(session).get(user.id)
    customer_id = await stripe.find_or_create_customer(
        email=user.email, name=account.name if account else None, user_id=user.id
    )
    checkout = await stripe.create_subscription_checkout(
        customer_id=customer_id, course_id=course_id, user_id=user.id
    )
    log.info("checkout_created", course_id=course_id, checkout_id=checkout.id)
    return CheckoutResponse(session_id=checkout.id, url=checkout.url)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    body: VerifyPaymentRequest,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
    stripe: StripeClient = Depends(stripe_dep),
) -> VerifyPaymentResponse:
    user = gate.owner(principal, ResourceKind.PAYMENT)
    if not body.session_id:
        raise InvalidInput("Session ID and Course ID are required")
    course_id = parse_id(body.course_id, label="course ID")

    checkout = await stripe.retrieve_checkout(body.session_id)
    if checkout.payment_status != "paid":
        raise InvalidInput("Payment not completed", code="PAYMENT_NOT_COMPLETED")
    # The checkout must belong to the caller; a missing owner matches nobody.
    gate.owner(principal, ResourceKind.PAYMENT, target_user_id=checkout.metadata.get("userId", ""))

    enrollment = await EnrollmentRepo(session).get(user_id=user.id, course_id=course_id)
    return VerifyPaymentResponse(
        success=True,
        payment_status=checkout.payment_status,
        enrolled=enrollment is not None,
        enrollment_date=enrollment.enrolled_at if enrollment is not None else None,
    )


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, bool]:
    payload = await request.body()
    try:
        event = verify_event(
            payload,
            request.headers.get("stripe-signature"),
            secret=settings.stripe_webhook_secret,
            tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
        )
    except WebhookSignatureError as e:
        log.warning("webhook_rejected", reason=str(e))
        raise InvalidInput(
            "Webhook signature verification failed", code="INVALID_SIGNATURE"
        ) from e

    processor = WebhookProcessor(session, default_plan_type=settings.subscription_plan_type)
    await processor.handle(event)
    return {"received": True}
