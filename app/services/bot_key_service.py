"""Bot key service — issue, rotate, reveal and authenticate per-user API keys.

This is the only module that writes ``bot_keys`` or ``bot_key_audit`` rows.
Raw keys are returned to the caller and never logged; log lines carry the
user id, key id and last4 only.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ConfigError, NotFoundError, RateLimitedError, StorageError
from app.models.bot_key import BotKey, BotKeyAudit
from app.services.rate_limiter import RateLimiter, reveal_limiter
from app.utils import crypto

logger = logging.getLogger(__name__)

REGENERATE_WARNING = "Save this key securely. It will NOT be shown again."

_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}
_ROTATED_FIELDS = ("ciphertext", "iv", "tag", "key_hash", "last4", "key_version")


@dataclass(frozen=True)
class IssuedKey:
    api_key: str
    last4: str
    bot_key_id: str
    action: str  # issue|regenerate


async def get_bot_key(db: AsyncSession, user_id: str) -> BotKey | None:
    # populate_existing: rows may have been rewritten by a Core upsert in this session
    stmt = select(BotKey).where(BotKey.user_id == user_id).execution_options(populate_existing=True)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise StorageError("Failed to load bot key") from exc
    return result.scalar_one_or_none()


async def list_audit(db: AsyncSession, user_id: str) -> list[BotKeyAudit]:
    stmt = (
        select(BotKeyAudit)
        .where(BotKeyAudit.user_id == user_id)
        .order_by(BotKeyAudit.created_at.desc(), BotKeyAudit.id.desc())
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise StorageError("Failed to load audit log") from exc
    return list(result.scalars().all())


def _sealed_fields(api_key: str, user_id: str, bot_key_id: str) -> dict:
    encrypted = crypto.encrypt(api_key, user_id, bot_key_id)
    return {
        "ciphertext": encrypted.ciphertext,
        "iv": encrypted.iv,
        "tag": encrypted.auth_tag,
        "key_hash": crypto.hash_secret(api_key),
        "last4": api_key[-4:],
        "key_version": crypto.current_key_version(),
    }


def _upsert_statement(db: AsyncSession, values: dict):
    """INSERT ... ON CONFLICT (user_id) DO UPDATE, returning the stored row id.

    The id column is left out of the update so it stays stable across rotations.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise ConfigError(f"Bot key upsert is not supported on {dialect}")
    stmt = insert(BotKey).values(**values)
    set_ = {name: stmt.excluded[name] for name in _ROTATED_FIELDS}
    set_["updated_at"] = func.now()
    return stmt.on_conflict_do_update(index_elements=[BotKey.user_id], set_=set_).returning(BotKey.id)


async def issue_or_rotate(db: AsyncSession, user_id: str) -> IssuedKey:
    """Create the user's bot key, or replace it if one exists.

    The key row is written with a single upsert on ``user_id``, and its audit
    entry commits in the same transaction; the raw key is only returned once
    that commit succeeded. The previous key stops authenticating as soon as
    the new hash is stored.
    """
    try:
        existing_id = (
            await db.execute(select(BotKey.id).where(BotKey.user_id == user_id))
        ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to load bot key") from exc
    bot_key_id = existing_id or str(uuid.uuid4())

    api_key = crypto.generate_secret()
    last4 = api_key[-4:]
    fields = _sealed_fields(api_key, user_id, bot_key_id)
    upsert = _upsert_statement(db, {"id": bot_key_id, "user_id": user_id, **fields})

    try:
        stored_id = (await db.execute(upsert)).scalar_one()
        created = existing_id is None and stored_id == bot_key_id
        if stored_id != bot_key_id:
            # a concurrent request created the row first; bind the ciphertext to its id
            await db.execute(
                update(BotKey)
                .where(BotKey.id == stored_id)
                .values(**_sealed_fields(api_key, user_id, stored_id))
            )
            bot_key_id = stored_id
        action = "issue" if created else "regenerate"
        db.add(BotKeyAudit(user_id=user_id, bot_key_id=bot_key_id, action=action))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Failed to store bot key %s for user %s: %s", bot_key_id, user_id, type(exc).__name__
        )
        raise StorageError("Failed to store bot key") from exc

    logger.info("Bot key %s for user %s: %s (…%s)", bot_key_id, user_id, action, last4)
    return IssuedKey(api_key=api_key, last4=last4, bot_key_id=bot_key_id, action=action)


async def reveal(
    db: AsyncSession, user_id: str, limiter: RateLimiter | None = None
) -> tuple[str, str]:
    """Decrypt and return ``(api_key, last4)`` for the user's bot key.

    The rate limit is checked first; a denied request never reaches the
    database or the cipher and leaves no audit entry.
    """
    decision = (limiter if limiter is not None else reveal_limiter).check(user_id)
    if not decision.allowed:
        raise RateLimitedError(
            "Too many reveal attempts. Please try again later.",
            retry_after=decision.retry_after,
        )

    bot_key = await get_bot_key(db, user_id)
    if bot_key is None:
        raise NotFoundError("No bot key found.")

    api_key = crypto.decrypt(
        crypto.EncryptedSecret(ciphertext=bot_key.ciphertext, iv=bot_key.iv, auth_tag=bot_key.tag),
        user_id,
        bot_key.id,
        key_version=bot_key.key_version,
    )

    db.add(BotKeyAudit(user_id=user_id, bot_key_id=bot_key.id, action="reveal"))
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Failed to record reveal") from exc

    logger.info("Bot key %s revealed to user %s (…%s)", bot_key.id, user_id, bot_key.last4)
    return api_key, bot_key.last4


async def authenticate(db: AsyncSession, presented_key: str) -> str | None:
    """Resolve the owning user id for a presented key by hash lookup. Never decrypts."""
    if not presented_key:
        return None
    key_hash = crypto.hash_secret(presented_key)
    try:
        result = await db.execute(select(BotKey.user_id).where(BotKey.key_hash == key_hash))
    except SQLAlchemyError as exc:
        raise StorageError("Failed to look up bot key") from exc
    return result.scalar_one_or_none()
