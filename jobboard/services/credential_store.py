"""Credential store: user records and password hashing."""

import asyncio
import logging
import re
from functools import lru_cache
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer_group

from jobboard.core import settings
from jobboard.models.user import ROLES, SECRET_COLUMNS, User
from jobboard.services.errors import DuplicateEmailError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@([\w-]+\.)+[\w-]{2,}$")

# Argon2id hasher. Cost parameters come from settings so tests can run cheap.
ph = PasswordHasher(
    time_cost=settings.password_hash_time_cost,
    memory_cost=settings.password_hash_memory_cost,
    parallelism=settings.password_hash_parallelism,
    hash_len=32,
    salt_len=16,
)


def normalize_email(email: str) -> str:
    """Emails compare case-insensitively; store and look up the lowercased form."""
    return email.strip().lower()


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using Argon2's own comparison."""
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        logger.warning("Stored password hash could not be verified")
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("jobboard-timing-equalizer")


async def hash_password_async(password: str) -> str:
    """Hash in a worker thread so other requests keep making progress."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


async def burn_verification(password: str) -> None:
    """Spend one verification's worth of time on a throwaway hash.

    Used when the account does not exist so response timing does not
    reveal whether the email is registered.
    """
    await asyncio.to_thread(verify_password, password, _dummy_hash())


class CredentialStore:
    """Persisted user records with hashed passwords."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, email: str, password: str, role: str, name: str) -> User:
        """Create a user. Raises DuplicateEmailError if the email is taken."""
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        email = normalize_email(email)
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError("Email already in use")

        user = User(
            email=email,
            name=name.strip(),
            role=role,
            password_hash=await hash_password_async(password),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await self.session.rollback()
            raise DuplicateEmailError("Email already in use") from e

        logger.info(f"Created user {user.id} with role {role}")
        return user

    @staticmethod
    async def verify(password: str, stored_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        return await verify_password_async(password, stored_hash)

    async def find_by_email(self, email: str, include_secrets: bool = False) -> User | None:
        """Get a user by email. Secret columns load only when requested."""
        stmt = select(User).where(User.email == normalize_email(email))
        return await self._first(stmt, include_secrets)

    async def find_by_id(self, user_id: UUID, include_secrets: bool = False) -> User | None:
        """Get a user by ID. Secret columns load only when requested."""
        stmt = select(User).where(User.id == user_id)
        return await self._first(stmt, include_secrets)

    async def find_by_reset_token(self, token_digest: str) -> User | None:
        stmt = select(User).where(User.reset_password_token == token_digest)
        return await self._first(stmt, include_secrets=True)

    async def set_password(self, user_id: UUID, password: str) -> None:
        """Replace the password hash and revoke the refresh session in one update."""
        password_hash = await hash_password_async(password)
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                password_hash=password_hash,
                refresh_token_id=None,
                reset_password_token=None,
                reset_password_expires=None,
            )
        )
        await self.session.commit()
        logger.info(f"Password updated for user {user_id}")

    async def _first(self, stmt, include_secrets: bool) -> User | None:
        if include_secrets:
            # Always re-read secrets; an identity-map copy may be stale
            stmt = stmt.options(undefer_group(SECRET_COLUMNS)).execution_options(
                populate_existing=True
            )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
