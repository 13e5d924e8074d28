from __future__ import annotations

from decimal import Decimal

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.db.models import Payment


class PaymentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: str,
        stripe_session_id: str | None,
        stripe_subscription_id: str | None,
        amount: Decimal | None,
        currency: str,
        status: str,
        description: str | None,
    ) -> Payment:
        payment = Payment(
            user_id=user_id,
            stripe_session_id=stripe_session_id,
            stripe_subscription_id=stripe_subscription_id,
            amount=amount,
            currency=currency,
            status=status,
            description=description,
        )
        self._session.add(payment)
        await self._session.flush()
        return payment

    async def recent(self, limit: int = 100) -> list[Payment]:
        stmt = select(Payment).order_by(desc(Payment.created_at), desc(Payment.id)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
