"""Tests for find_or_create_user: idempotence per provider identity, no profile refresh."""

import pytest
from sqlalchemy import select

from app.db.session import async_session_maker
from app.models.oauth_account import OAuthAccount
from app.models.user import User
from app.services.identity import DataIntegrityError, find_or_create_user


@pytest.mark.asyncio
async def test_same_identity_resolves_to_same_user(clean_db, row_count):
    async with async_session_maker() as session:
        first = await find_or_create_user(session, "google", "g-1", "a@test.com", "Ann", "https://pic/1")
        await session.commit()
    async with async_session_maker() as session:
        second = await find_or_create_user(session, "google", "g-1", "a@test.com", "Ann", "https://pic/1")
        await session.commit()
    assert first.id == second.id
    assert await row_count(User) == 1
    assert await row_count(OAuthAccount) == 1


@pytest.mark.asyncio
async def test_same_email_different_identity_creates_distinct_users(clean_db, row_count):
    async with async_session_maker() as session:
        g = await find_or_create_user(session, "google", "g-1", "same@test.com")
        m = await find_or_create_user(session, "microsoft", "m-1", "same@test.com")
        other = await find_or_create_user(session, "google", "g-2", "same@test.com")
        await session.commit()
    assert len({g.id, m.id, other.id}) == 3
    assert await row_count(User) == 3


@pytest.mark.asyncio
async def test_new_user_gets_linked_account(clean_db):
    async with async_session_maker() as session:
        user = await find_or_create_user(session, "microsoft", "m-9", "m@test.com", "Max")
        await session.commit()
        r = await session.execute(select(OAuthAccount).where(OAuthAccount.user_id == user.id))
        account = r.scalar_one()
    assert account.provider == "microsoft"
    assert account.provider_user_id == "m-9"
    assert account.email == "m@test.com"
    assert user.name == "Max"
    assert user.picture is None


@pytest.mark.asyncio
async def test_repeat_login_does_not_refresh_profile(clean_db):
    async with async_session_maker() as session:
        await find_or_create_user(session, "google", "g-1", "a@test.com", "Old Name", "https://pic/old")
        await session.commit()
    async with async_session_maker() as session:
        user = await find_or_create_user(session, "google", "g-1", "new@test.com", "New Name", "https://pic/new")
    assert user.email == "a@test.com"
    assert user.name == "Old Name"
    assert user.picture == "https://pic/old"


@pytest.mark.asyncio
async def test_blank_optional_fields_stored_as_null(clean_db):
    async with async_session_maker() as session:
        user = await find_or_create_user(session, "google", "g-3", "b@test.com", "", "")
        await session.commit()
    assert user.name is None
    assert user.picture is None


@pytest.mark.asyncio
async def test_account_pointing_at_missing_user_raises(clean_db):
    async with async_session_maker() as session:
        session.add(
            OAuthAccount(user_id="missing-user", provider="google", provider_user_id="g-x", email="x@test.com")
        )
        await session.commit()
    async with async_session_maker() as session:
        with pytest.raises(DataIntegrityError):
            await find_or_create_user(session, "google", "g-x", "x@test.com")


@pytest.mark.asyncio
async def test_concurrent_first_login_reuses_winner(clean_db, row_count, monkeypatch):
    from app.services import identity

    async with async_session_maker() as session:
        winner = await find_or_create_user(session, "google", "g-race", "r@test.com", "Racer")
        await session.commit()

    # The initial lookup misses, as it would for a request that raced the winner's insert
    real_lookup = identity._linked_user
    calls = []

    async def lagging_lookup(session, provider, provider_user_id):
        calls.append(provider_user_id)
        if len(calls) == 1:
            return None
        return await real_lookup(session, provider, provider_user_id)

    monkeypatch.setattr(identity, "_linked_user", lagging_lookup)
    async with async_session_maker() as session:
        user = await find_or_create_user(session, "google", "g-race", "r@test.com", "Racer")
        await session.commit()

    assert user.id == winner.id
    assert len(calls) == 2
    assert await row_count(User) == 1
    assert await row_count(OAuthAccount) == 1
