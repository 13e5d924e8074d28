from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep
from lingala_api.api.schemas import ApiModel, SubscriptionOut
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.db.models import utcnow
from lingala_api.db.repositories.subscriptions import SubscriptionRepo
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.subscriptions import current_active
from lingala_api.entitlements.types import ResourceKind

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


class SubscriptionStatusResponse(ApiModel):
    has_active_subscription: bool
    subscription: SubscriptionOut | None


@router.get("/status", response_model=SubscriptionStatusResponse)
async def subscription_status(
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
) -> SubscriptionStatusResponse:
    user = gate.owner(principal, ResourceKind.SUBSCRIPTION)
    rows = await SubscriptionRepo(session).list_for_user(user.id)
    active = current_active(rows, now=utcnow())
    return SubscriptionStatusResponse(
        has_active_subscription=active is not None,
        subscription=SubscriptionOut.model_validate(active) if active is not None else None,
    )
