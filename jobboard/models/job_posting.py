"""Job posting model."""

import uuid

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from jobboard.models.base import BaseModel


class JobPosting(BaseModel):
    """A posting owned by a recruiter."""

    __tablename__ = "job_postings"

    recruiter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(String(160), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open", index=True)

    def __repr__(self) -> str:
        return f"<JobPosting {self.title}>"
