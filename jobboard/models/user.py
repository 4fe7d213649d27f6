"""User model: identity plus credential and session state."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from jobboard.models.base import BaseModel

ROLE_JOB_SEEKER = "job_seeker"
ROLE_RECRUITER = "recruiter"
ROLES = (ROLE_JOB_SEEKER, ROLE_RECRUITER)

# Columns in this group are never loaded unless a query asks for them with
# undefer_group(SECRET_COLUMNS).
SECRET_COLUMNS = "secrets"


class User(BaseModel):
    """A job seeker or recruiter account.

    The email is stored lowercased so the unique index enforces
    case-insensitive uniqueness. refresh_token_id holds the single live
    refresh-session identifier; clearing it revokes every outstanding
    refresh token for the user.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, deferred=True, deferred_group=SECRET_COLUMNS
    )
    refresh_token_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, deferred=True, deferred_group=SECRET_COLUMNS
    )

    # SHA-256 digest of the emailed reset token, never the token itself
    reset_password_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True, deferred=True, deferred_group=SECRET_COLUMNS
    )
    reset_password_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, deferred=True, deferred_group=SECRET_COLUMNS
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.role}>"
