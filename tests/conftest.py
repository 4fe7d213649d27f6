"""Pytest configuration and fixtures for backend tests.

Tests run against an in-memory SQLite database through aiosqlite. Each test
gets a fresh engine, so no state leaks between tests.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_ACCESS_SECRET_KEY"] = "a" * 48
os.environ["JWT_REFRESH_SECRET_KEY"] = "r" * 48
os.environ["DEBUG"] = "false"
# Cheap Argon2 parameters; production defaults take ~100ms per hash
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "1024"
os.environ["PASSWORD_HASH_PARALLELISM"] = "1"
os.environ["NOTIFICATION_WEBHOOK_URL"] = "https://hooks.example.com/notify"

TEST_PASSWORD = "Passw0rd123"
SEEKER_EMAIL = "seeker@example.com"
RECRUITER_EMAIL = "recruiter@example.com"


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create an in-memory SQLite engine with all tables."""
    from jobboard.core.database import Base
    from jobboard.models import JobPosting, User  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from jobboard.core.database import get_db
    from jobboard.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Service Fixtures ---


@pytest.fixture
def token_service():
    """Token service with the test secrets."""
    from jobboard.services.tokens import get_token_service

    return get_token_service()


@pytest.fixture
def auth_service(db_session):
    """AuthService bound to the test session with a recording notifier."""
    from jobboard.services.auth import AuthService

    sent: list[tuple[str, str]] = []

    async def notifier(to: str, reset_url: str) -> None:
        sent.append((to, reset_url))

    service = AuthService(db_session, notifier=notifier, reuse_refresh_id=False)
    service.sent_notifications = sent
    return service


# --- User Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating users through the credential store."""
    from jobboard.services.credential_store import CredentialStore

    async def _create_user(
        email: str = SEEKER_EMAIL,
        password: str = TEST_PASSWORD,
        role: str = "job_seeker",
        name: str = "Test User",
    ):
        return await CredentialStore(db_session).create(
            email=email, password=password, role=role, name=name
        )

    return _create_user


@pytest_asyncio.fixture
async def job_seeker(user_factory):
    """Create a job seeker account."""
    return await user_factory(email=SEEKER_EMAIL, role="job_seeker", name="Sam Seeker")


@pytest_asyncio.fixture
async def recruiter(user_factory):
    """Create a recruiter account."""
    return await user_factory(email=RECRUITER_EMAIL, role="recruiter", name="Rita Recruiter")


@pytest.fixture
def seeker_headers(job_seeker, token_service) -> dict[str, str]:
    """Bearer headers carrying a job seeker access token."""
    token = token_service.sign_access(str(job_seeker.id), job_seeker.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def recruiter_headers(recruiter, token_service) -> dict[str, str]:
    """Bearer headers carrying a recruiter access token."""
    token = token_service.sign_access(str(recruiter.id), recruiter.role)
    return {"Authorization": f"Bearer {token}"}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Mark tests that drive the ASGI app as integration, the rest as unit."""
    integration_fixtures = {"async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue
        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
