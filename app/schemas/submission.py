"""Webhook submission schemas."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class SubmissionCreate(BaseModel):
    """Payload bots POST to the webhook. Text fields are trimmed before checks."""

    title: str = Field(..., max_length=256)
    description: str
    presenter_name: str = Field(..., max_length=128)
    links: list[str] = []
    submission_type: Literal["speaker_demo", "topic"] = "speaker_demo"
    submitted_by: Literal["bot", "bot_on_behalf", "human"] = "bot"
    submitted_for_name: str | None = None
    submitted_for_contact: str | None = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("title", "description", "presenter_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("submitted_for_name", "submitted_for_contact")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def on_behalf_needs_name(self) -> "SubmissionCreate":
        if self.submitted_by == "bot_on_behalf" and not self.submitted_for_name:
            raise ValueError("submitted_for_name is required when submitted_by is bot_on_behalf")
        return self


class SubmissionAccepted(BaseModel):
    ok: bool = True
    id: int
    links: list[str]
    dropped_links: int = 0
