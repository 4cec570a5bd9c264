"""Bot key request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

AuditAction = Literal["issue", "reveal", "regenerate"]


class BotKeyResponse(BaseModel):
    id: str
    last4: str
    key_version: int
    created_at: datetime
    updated_at: datetime
    # ciphertext and key_hash are NEVER returned

    model_config = {"from_attributes": True}


class BotKeySecret(BaseModel):
    """Raw key returned once by regenerate / reveal."""

    api_key: str
    last4: str
    warning: str | None = None


class BotKeyAuditResponse(BaseModel):
    id: int
    bot_key_id: str
    action: AuditAction
    created_at: datetime

    model_config = {"from_attributes": True}
