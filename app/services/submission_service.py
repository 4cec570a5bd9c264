"""Submission service — accepts demos/topics from bots authenticated by bot key."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import AuthenticationError, RateLimitedError, StorageError, ValidationError
from app.models.submission import Submission
from app.schemas.submission import SubmissionCreate
from app.services import bot_key_service
from app.services.rate_limiter import RateLimiter, ingest_limiter
from app.utils.crypto import hash_secret
from app.utils.links import sanitize_links

logger = logging.getLogger(__name__)


def clean_links(raw_links: list[str]) -> tuple[list[str], int]:
    """Apply the configured link policy. Returns ``(valid_links, dropped_count)``."""
    valid, rejected = sanitize_links(raw_links, settings.link_allowed_hosts)
    if rejected and settings.link_policy == "strict":
        raise ValidationError(f"{len(rejected)} invalid link(s); only https links without credentials are accepted.")
    if settings.link_required and not valid:
        raise ValidationError("At least one valid https link is required.")
    return valid, len(rejected)


async def create_from_bot(
    db: AsyncSession,
    api_key: str,
    data: SubmissionCreate,
    limiter: RateLimiter | None = None,
) -> tuple[Submission, int]:
    user_id = await bot_key_service.authenticate(db, api_key)
    if user_id is None:
        raise AuthenticationError()

    # keyed by hash so raw keys never sit in the limiter's memory
    decision = (limiter if limiter is not None else ingest_limiter).check(hash_secret(api_key))
    if not decision.allowed:
        raise RateLimitedError(retry_after=decision.retry_after)

    links, dropped = clean_links(data.links)

    submission = Submission(
        title=data.title,
        description=data.description,
        presenter_name=data.presenter_name,
        links=links or None,
        submission_type=data.submission_type,
        submitted_by=data.submitted_by,
        submitted_for_name=data.submitted_for_name,
        submitted_for_contact=data.submitted_for_contact,
        user_id=user_id,
    )
    db.add(submission)
    try:
        await db.commit()
        await db.refresh(submission)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Failed to store submission") from exc

    logger.info(
        "Submission %d from bot of user %s (%d link(s), %d dropped)",
        submission.id, user_id, len(links), dropped,
    )
    return submission, dropped
