from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session
from lingala_api.api.schemas import PaymentOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.repositories.payments import PaymentRepo
from lingala_api.entitlements.types import ResourceKind

router = APIRouter(prefix="/api/admin/payments", tags=["admin-payments"])

RECENT_PAYMENTS = 100


@router.get("", response_model=list[PaymentOut])
async def list_payments(
    _: AdminPrincipal = Depends(require_admin(ResourceKind.PAYMENT)),
    session: AsyncSession = Depends(db_session),
) -> list[PaymentOut]:
    payments = await PaymentRepo(session).recent(RECENT_PAYMENTS)
    return [PaymentOut.model_validate(p) for p in payments]
