"""Bot key ORM models — one encrypted API key per user, plus an append-only audit trail."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class BotKey(Base):
    __tablename__ = "bot_keys"

    # stable across regenerations, bound into the ciphertext AAD
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    ciphertext: Mapped[str] = mapped_column(Text)  # AES-256-GCM, base64
    iv: Mapped[str] = mapped_column(String(32))
    tag: Mapped[str] = mapped_column(String(32))
    key_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # sha256 hex
    last4: Mapped[str] = mapped_column(String(4))
    key_version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class BotKeyAudit(Base):
    __tablename__ = "bot_key_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    bot_key_id: Mapped[str] = mapped_column(String(36))
    action: Mapped[str] = mapped_column(String(16))  # issue|reveal|regenerate
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
