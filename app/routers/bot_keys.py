"""Bot key endpoints for signed-in users: status, regenerate, reveal, audit trail."""

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.base import IdentityProvider
from app.adapters.gotrue import identity
from app.database import get_db
from app.schemas.bot_key import BotKeyAuditResponse, BotKeyResponse, BotKeySecret
from app.services import bot_key_service

router = APIRouter()


def get_identity_provider() -> IdentityProvider:
    return identity


async def current_user_id(
    authorization: str = Header(default=""),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> str:
    """Resolve the caller from ``Authorization: Bearer <access token>``."""
    token = authorization[7:] if authorization.startswith("Bearer ") else ""
    user_id = await provider.get_user_id(token) if token else None
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized.")
    return user_id


@router.get("/", response_model=BotKeyResponse)
async def get_bot_key(
    user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)
):
    bot_key = await bot_key_service.get_bot_key(db, user_id)
    if not bot_key:
        raise HTTPException(status_code=404, detail="No bot key found.")
    return bot_key


@router.post("/regenerate", response_model=BotKeySecret)
async def regenerate_bot_key(
    user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)
):
    issued = await bot_key_service.issue_or_rotate(db, user_id)
    return BotKeySecret(
        api_key=issued.api_key,
        last4=issued.last4,
        warning=bot_key_service.REGENERATE_WARNING,
    )


@router.post("/reveal", response_model=BotKeySecret)
async def reveal_bot_key(
    user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)
):
    api_key, last4 = await bot_key_service.reveal(db, user_id)
    return BotKeySecret(api_key=api_key, last4=last4)


@router.get("/audit", response_model=list[BotKeyAuditResponse])
async def list_bot_key_audit(
    user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)
):
    return await bot_key_service.list_audit(db, user_id)
