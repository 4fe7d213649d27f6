"""Unit tests for CredentialStore and password hashing."""

import pytest
from sqlalchemy import inspect, select

from jobboard.models import User
from jobboard.services.credential_store import (
    CredentialStore,
    hash_password,
    normalize_email,
    verify_password,
)
from jobboard.services.errors import DuplicateEmailError

pytestmark = pytest.mark.asyncio


class TestPasswordHashing:
    async def test_hash_is_argon2id_and_salted(self):
        first = hash_password("Passw0rd1")
        second = hash_password("Passw0rd1")
        assert first.startswith("$argon2id$")
        assert first != second

    async def test_verify(self):
        stored = hash_password("Passw0rd1")
        assert verify_password("Passw0rd1", stored) is True
        assert verify_password("Passw0rd2", stored) is False

    async def test_corrupt_hash_is_a_mismatch(self):
        assert verify_password("Passw0rd1", "not-a-hash") is False


class TestNormalizeEmail:
    async def test_lowercases_and_strips(self):
        assert normalize_email("  Alice@Example.COM ") == "alice@example.com"


class TestCreate:
    async def test_create_stores_hash_not_password(self, db_session):
        store = CredentialStore(db_session)
        user = await store.create("New@Example.com", "Passw0rd1", "recruiter", " Nia ")

        assert user.email == "new@example.com"
        assert user.name == "Nia"
        assert user.role == "recruiter"
        assert user.password_hash != "Passw0rd1"
        assert await store.verify("Passw0rd1", user.password_hash)

    async def test_duplicate_email_any_case(self, db_session):
        store = CredentialStore(db_session)
        await store.create("dup@example.com", "Passw0rd1", "job_seeker", "One")

        with pytest.raises(DuplicateEmailError):
            await store.create("DUP@example.com", "Passw0rd1", "job_seeker", "Two")

        count = len((await db_session.execute(select(User))).scalars().all())
        assert count == 1

    async def test_unknown_role_rejected(self, db_session):
        with pytest.raises(ValueError):
            await CredentialStore(db_session).create("x@example.com", "Passw0rd1", "admin", "X")


class TestLookup:
    async def test_secret_columns_not_loaded_by_default(self, db_session, job_seeker):
        db_session.expunge_all()

        user = await CredentialStore(db_session).find_by_email(job_seeker.email)

        unloaded = inspect(user).unloaded
        assert "password_hash" in unloaded
        assert "refresh_token_id" in unloaded
        assert "reset_password_token" in unloaded

    async def test_secret_columns_loaded_on_request(self, db_session, job_seeker):
        db_session.expunge_all()

        user = await CredentialStore(db_session).find_by_email(
            job_seeker.email, include_secrets=True
        )

        assert "password_hash" not in inspect(user).unloaded
        assert user.password_hash.startswith("$argon2id$")

    async def test_find_by_email_is_case_insensitive(self, db_session, job_seeker):
        user = await CredentialStore(db_session).find_by_email(job_seeker.email.upper())
        assert user is not None
        assert user.id == job_seeker.id

    async def test_find_by_id_missing(self, db_session):
        from uuid import uuid4

        assert await CredentialStore(db_session).find_by_id(uuid4()) is None


class TestSetPassword:
    async def test_set_password_revokes_session(self, db_session, job_seeker):
        from sqlalchemy import update

        await db_session.execute(
            update(User).where(User.id == job_seeker.id).values(refresh_token_id="live")
        )
        await db_session.commit()

        store = CredentialStore(db_session)
        await store.set_password(job_seeker.id, "Diff3rentPass")

        user = await store.find_by_id(job_seeker.id, include_secrets=True)
        assert user.refresh_token_id is None
        assert await store.verify("Diff3rentPass", user.password_hash)
