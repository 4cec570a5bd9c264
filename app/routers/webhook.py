"""Public ingestion webhook — bots submit demos/topics with their bot key."""

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.submission import SubmissionAccepted, SubmissionCreate
from app.services import submission_service

router = APIRouter()


@router.get("/")
async def webhook_usage():
    return {
        "message": "POST a submission with your bot key in the X-API-Key header",
        "required": ["title", "description", "presenter_name"],
        "optional": [
            "links",
            "submission_type",
            "submitted_by",
            "submitted_for_name",
            "submitted_for_contact",
        ],
    }


@router.post("/", response_model=SubmissionAccepted)
async def ingest_submission(
    data: SubmissionCreate,
    x_api_key: str = Header(default=""),
    db: AsyncSession = Depends(get_db),
):
    submission, dropped = await submission_service.create_from_bot(db, x_api_key, data)
    return SubmissionAccepted(id=submission.id, links=submission.links or [], dropped_links=dropped)
