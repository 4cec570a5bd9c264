"""Submission ORM model — demos and topics pushed in by bots through the webhook."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(256))
    description: Mapped[str] = mapped_column(Text)
    presenter_name: Mapped[str] = mapped_column(String(128))
    links: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    submission_type: Mapped[str] = mapped_column(String(32), default="speaker_demo")  # speaker_demo|topic
    submitted_by: Mapped[str] = mapped_column(String(32), default="bot")  # bot|bot_on_behalf|human
    submitted_for_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    submitted_for_contact: Mapped[str | None] = mapped_column(String(256), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)  # bot key owner
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
