"""
lingala_api.db.repositories.subscriptions

Repository for `Subscription` entities.

Responsibilities:
- Return every subscription row of a user (the validity invariant is evaluated
  over all of them, not only the newest).
- Persist rows and status changes driven by billing webhooks.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Subscription, utcnow


class SubscriptionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_user(self, user_id: str) -> list[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(desc(Subscription.created_at), desc(Subscription.id))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(
        self,
        *,
        user_id: str,
        stripe_customer_id: str | None,
        stripe_subscription_id: str | None,
        stripe_price_id: str | None,
        status: str | None,
        plan_type: str,
        current_period_start: datetime | None,
        current_period_end: datetime | None,
    ) -> Subscription:
        row = Subscription(
            user_id=user_id,
            stripe_customer_id=stripe_customer_id,
            stripe_subscription_id=stripe_subscription_id,
            stripe_price_id=stripe_price_id,
            status=status,
            plan_type=plan_type,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def update_by_stripe_id(
        self,
        stripe_subscription_id: str,
        *,
        status: str,
        current_period_start: datetime | None = None,
        current_period_end: datetime | None = None,
    ) -> int:
        values: dict[str, object] = {"status": status, "updated_at": utcnow()}
        if current_period_start is not None:
            values["current_period_start"] = current_period_start
        if current_period_end is not None:
            values["current_period_end"] = current_period_end
        stmt = (
            update(Subscription)
            .where(Subscription.stripe_subscription_id == stripe_subscription_id)
            .values(**values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
