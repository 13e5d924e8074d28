from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.api.deps import db_session, gate_dep, hasher_dep, settings_dep
from lingala_api.api.schemas import ApiModel
from lingala_api.auth.deps import current_principal
from lingala_api.auth.models import Anonymous, UserPrincipal
from lingala_api.auth.passwords import PasswordHasher
from lingala_api.entitlements.gate import AccessGate
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.services.accounts import AccountService
from lingala_api.settings import Settings

router = APIRouter(prefix="/api/user", tags=["user"])


class PasswordChangeRequest(ApiModel):
    current_password: str | None = None
    new_password: str | None = None


class LanguageRequest(ApiModel):
    language: str


@router.patch("/password")
async def change_password(
    body: PasswordChangeRequest,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
    hasher: PasswordHasher = Depends(hasher_dep),
) -> dict[str, object]:
    user = gate.owner(principal, ResourceKind.ACCOUNT, Action.UPDATE)
    await AccountService(session, hasher=hasher).change_password(
        user_id=user.id, current=body.current_password, new=body.new_password
    )
    return {"success": True, "message": "Password updated successfully"}


@router.patch("/language")
async def set_language(
    body: LanguageRequest,
    principal: UserPrincipal | Anonymous = Depends(current_principal),
    session: AsyncSession = Depends(db_session),
    gate: AccessGate = Depends(gate_dep),
    hasher: PasswordHasher = Depends(hasher_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, bool]:
    user = gate.owner(principal, ResourceKind.ACCOUNT, Action.UPDATE)
    await AccountService(session, hasher=hasher).set_language(
        user_id=user.id, language=body.language, supported=settings.supported_languages
    )
    return {"success": True}
