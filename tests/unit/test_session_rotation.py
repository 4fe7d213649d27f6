"""Unit tests for refresh-session establishment, redemption and revocation.

The concurrency tests use a file-backed SQLite database so that each
session gets its own connection, the way separate requests would.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from jobboard.services.auth import AuthService
from jobboard.services.credential_store import CredentialStore
from jobboard.services.errors import InvalidCredentialsError, InvalidTokenError, TokenError
from tests.conftest import SEEKER_EMAIL, TEST_PASSWORD

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh on-disk database with one job seeker."""
    from jobboard.core.database import Base
    from jobboard.models import JobPosting, User  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await CredentialStore(session).create(SEEKER_EMAIL, TEST_PASSWORD, "job_seeker", "Sam")

    yield factory

    await engine.dispose()


async def _login(factory, reuse: bool = False):
    async with factory() as session:
        return await AuthService(session, reuse_refresh_id=reuse).login(
            SEEKER_EMAIL, TEST_PASSWORD
        )


async def _refresh(factory, refresh_token: str) -> str:
    async with factory() as session:
        return await AuthService(session).refresh(refresh_token)


async def _redeems(factory, refresh_token: str) -> bool:
    try:
        await _refresh(factory, refresh_token)
    except TokenError:
        return False
    return True


class TestOverwritePolicy:
    async def test_sequential_logins_last_one_wins(self, session_factory):
        first = await _login(session_factory)
        second = await _login(session_factory)

        assert not await _redeems(session_factory, first.refresh_token)
        assert await _redeems(session_factory, second.refresh_token)

    async def test_concurrent_logins_leave_exactly_one_valid_token(self, session_factory):
        """Two racing logins both succeed but only one refresh token survives."""
        first, second = await asyncio.gather(
            _login(session_factory), _login(session_factory)
        )

        results = [
            await _redeems(session_factory, first.refresh_token),
            await _redeems(session_factory, second.refresh_token),
        ]
        assert sorted(results) == [False, True]

    async def test_refresh_does_not_rotate(self, session_factory):
        tokens = await _login(session_factory)

        assert await _redeems(session_factory, tokens.refresh_token)
        assert await _redeems(session_factory, tokens.refresh_token)


class TestSharedFamilyPolicy:
    async def test_sequential_logins_share_one_identifier(self, session_factory, token_service):
        first = await _login(session_factory, reuse=True)
        second = await _login(session_factory, reuse=True)

        assert (
            token_service.verify_refresh(first.refresh_token)["tid"]
            == token_service.verify_refresh(second.refresh_token)["tid"]
        )
        assert await _redeems(session_factory, first.refresh_token)
        assert await _redeems(session_factory, second.refresh_token)

    async def test_concurrent_first_logins_converge(self, session_factory, token_service):
        first, second = await asyncio.gather(
            _login(session_factory, reuse=True), _login(session_factory, reuse=True)
        )

        assert await _redeems(session_factory, first.refresh_token)
        assert await _redeems(session_factory, second.refresh_token)

    async def test_logout_ends_the_whole_family(self, session_factory):
        first = await _login(session_factory, reuse=True)
        second = await _login(session_factory, reuse=True)

        async with session_factory() as session:
            await AuthService(session).logout(first.refresh_token)

        assert not await _redeems(session_factory, first.refresh_token)
        assert not await _redeems(session_factory, second.refresh_token)

        third = await _login(session_factory, reuse=True)
        assert await _redeems(session_factory, third.refresh_token)


class TestRedemption:
    async def test_concurrent_refreshes_coalesce(self, auth_service, job_seeker):
        """Concurrent redemptions of one session run once and share the result."""
        tokens = await auth_service.login(SEEKER_EMAIL, TEST_PASSWORD)

        first, second = await asyncio.gather(
            auth_service.refresh(tokens.refresh_token),
            auth_service.refresh(tokens.refresh_token),
        )
        assert first == second

    async def test_logout_then_refresh_fails(self, auth_service, job_seeker):
        tokens = await auth_service.login(SEEKER_EMAIL, TEST_PASSWORD)
        await auth_service.logout(tokens.refresh_token)

        with pytest.raises(InvalidTokenError):
            await auth_service.refresh(tokens.refresh_token)

    async def test_logout_is_idempotent(self, auth_service, job_seeker):
        tokens = await auth_service.login(SEEKER_EMAIL, TEST_PASSWORD)
        await auth_service.logout(tokens.refresh_token)
        await auth_service.logout(tokens.refresh_token)

    async def test_forged_session_id_rejected(self, auth_service, job_seeker, token_service):
        await auth_service.login(SEEKER_EMAIL, TEST_PASSWORD)
        forged = token_service.sign_refresh(str(job_seeker.id), "0" * 32)

        with pytest.raises(InvalidTokenError):
            await auth_service.refresh(forged)

    async def test_refresh_for_deleted_user(self, auth_service, job_seeker, db_session):
        tokens = await auth_service.login(SEEKER_EMAIL, TEST_PASSWORD)
        await db_session.delete(job_seeker)
        await db_session.commit()

        with pytest.raises(InvalidTokenError):
            await auth_service.refresh(tokens.refresh_token)

    async def test_unknown_email_and_wrong_password_raise_same_error(
        self, auth_service, job_seeker
    ):
        with pytest.raises(InvalidCredentialsError) as unknown:
            await auth_service.login("nobody@example.com", TEST_PASSWORD)
        with pytest.raises(InvalidCredentialsError) as wrong:
            await auth_service.login(SEEKER_EMAIL, "Wr0ngPassword")
        assert str(unknown.value) == str(wrong.value)
