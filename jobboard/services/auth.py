"""Authentication service: login, refresh-token sessions, logout and password reset.

Each user has at most one live refresh-session identifier
(``User.refresh_token_id``). A refresh token is honoured only while its
``tid`` claim equals that identifier, so overwriting or clearing the
column revokes every refresh token issued against the old value.
"""

import hashlib
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.core import settings
from jobboard.models.user import User
from jobboard.services.credential_store import CredentialStore, burn_verification
from jobboard.services.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    ResetTokenError,
)
from jobboard.services.notifications import send_password_reset
from jobboard.services.single_flight import SingleFlight
from jobboard.services.tokens import TokenService, get_token_service

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], Awaitable[None]]

# Concurrent redemptions of the same refresh session share one result
_refresh_flights: SingleFlight[str] = SingleFlight()


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


def new_session_id() -> str:
    """Mint an opaque refresh-session identifier."""
    return secrets.token_hex(16)


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _parse_subject(claims: dict[str, Any]) -> UUID:
    try:
        return UUID(str(claims["sub"]))
    except (KeyError, ValueError) as e:
        raise InvalidTokenError("Token subject is malformed") from e


class AuthService:
    """Service for authentication and session-lifecycle operations."""

    def __init__(
        self,
        session: AsyncSession,
        tokens: TokenService | None = None,
        notifier: Notifier | None = None,
        reuse_refresh_id: bool | None = None,
    ):
        self.session = session
        self.credentials = CredentialStore(session)
        self.tokens = tokens or get_token_service()
        self.notifier = notifier or send_password_reset
        if reuse_refresh_id is None:
            reuse_refresh_id = settings.session_reuse_refresh_id
        self.reuse_refresh_id = reuse_refresh_id

    async def register(self, email: str, password: str, name: str, role: str) -> User:
        """Create an account. Raises DuplicateEmailError if the email is taken."""
        return await self.credentials.create(email=email, password=password, role=role, name=name)

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises InvalidCredentialsError for both "no such email" and "wrong
        password" so the two cannot be told apart.
        """
        user = await self.credentials.find_by_email(email, include_secrets=True)

        if user is None:
            await burn_verification(password)
            raise InvalidCredentialsError("Invalid credentials")

        if not await self.credentials.verify(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        return user

    async def login(self, email: str, password: str) -> IssuedTokens:
        """Authenticate and issue an access/refresh token pair."""
        user = await self.authenticate(email, password)
        token_id = await self._establish_session(user)

        subject = str(user.id)
        logger.info(f"User logged in: {subject}")
        return IssuedTokens(
            access_token=self.tokens.sign_access(subject, user.role),
            refresh_token=self.tokens.sign_refresh(subject, token_id),
        )

    async def _establish_session(self, user: User) -> str:
        """Return the refresh-session identifier to embed in the new token.

        Default policy mints a fresh identifier and overwrites the stored
        one, revoking refresh tokens from earlier logins. Concurrent logins
        race and the last write wins.

        With reuse_refresh_id the existing identifier is kept, so several
        devices share one refresh family until someone logs out.
        """
        if self.reuse_refresh_id:
            if user.refresh_token_id:
                return user.refresh_token_id

            # Only set it if still empty; a concurrent login may have won
            await self.session.execute(
                update(User)
                .where(User.id == user.id, User.refresh_token_id.is_(None))
                .values(refresh_token_id=new_session_id())
            )
            await self.session.commit()
            current = await self.session.scalar(
                select(User.refresh_token_id).where(User.id == user.id)
            )
            if current:
                return current
            # Cleared by a logout in between; fall through and mint one

        token_id = new_session_id()
        await self.session.execute(
            update(User).where(User.id == user.id).values(refresh_token_id=token_id)
        )
        await self.session.commit()
        return token_id

    async def refresh(self, refresh_token: str) -> str:
        """Redeem a refresh token for a new access token.

        The refresh token itself is not rotated. Raises TokenExpiredError or
        InvalidTokenError, the latter also when the session was revoked.
        """
        claims = self.tokens.verify_refresh(refresh_token)
        key = (claims["sub"], claims["tid"])
        return await _refresh_flights.do(key, lambda: self._redeem(claims))

    async def _redeem(self, claims: dict[str, Any]) -> str:
        user = await self.credentials.find_by_id(_parse_subject(claims), include_secrets=True)

        if user is None or not user.refresh_token_id:
            raise InvalidTokenError("Refresh session has been revoked")
        if not secrets.compare_digest(user.refresh_token_id.encode(), str(claims["tid"]).encode()):
            raise InvalidTokenError("Refresh session has been superseded")

        return self.tokens.sign_access(str(user.id), user.role)

    async def logout(self, refresh_token: str) -> None:
        """Clear the user's refresh session.

        Expired but correctly signed tokens are accepted here since they
        still identify the user.
        """
        claims = self.tokens.identify_refresh(refresh_token)
        user_id = _parse_subject(claims)

        await self.session.execute(
            update(User).where(User.id == user_id).values(refresh_token_id=None)
        )
        await self.session.commit()
        logger.info(f"User logged out: {user_id}")

    async def get_profile(self, subject: str) -> User | None:
        """Load the user named by an access token's subject."""
        return await self.credentials.find_by_id(_parse_subject({"sub": subject}))

    async def request_password_reset(self, email: str) -> None:
        """Store a reset token and send its link, if the account exists.

        Unknown emails return silently; callers answer both cases the same
        way. Raises NotificationError if the link could not be delivered.
        """
        user = await self.credentials.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = secrets.token_hex(32)
        expires = datetime.now(UTC) + timedelta(minutes=settings.password_reset_expire_minutes)
        await self.session.execute(
            update(User)
            .where(User.id == user.id)
            .values(reset_password_token=_digest(token), reset_password_expires=expires)
        )
        await self.session.commit()

        reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password/{token}"
        await self.notifier(user.email, reset_url)
        logger.info(f"Password reset link issued for user {user.id}")

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token. The token is single-use."""
        user = await self.credentials.find_by_reset_token(_digest(token))

        if (
            user is None
            or user.reset_password_expires is None
            or _as_utc(user.reset_password_expires) <= datetime.now(UTC)
        ):
            raise ResetTokenError("Invalid or expired token")

        # Also clears the reset token and revokes the refresh session
        await self.credentials.set_password(user.id, new_password)

    async def change_password(
        self, subject: str, current_password: str, new_password: str
    ) -> None:
        """Change a user's password and revoke their refresh session."""
        user = await self.credentials.find_by_id(
            _parse_subject({"sub": subject}), include_secrets=True
        )
        if user is None or not await self.credentials.verify(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        await self.credentials.set_password(user.id, new_password)
