"""Resolve an OAuth identity to a local user, creating user + linked account on first login."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.oauth_account import OAuthAccount
from app.models.user import User

logger = logging.getLogger(__name__)


class DataIntegrityError(RuntimeError):
    """An oauth_accounts row points at a user that does not exist."""


async def _linked_user(session: AsyncSession, provider: str, provider_user_id: str) -> User | None:
    r = await session.execute(
        select(OAuthAccount.user_id).where(
            OAuthAccount.provider == provider,
            OAuthAccount.provider_user_id == provider_user_id,
        )
    )
    user_id = r.scalar_one_or_none()
    if user_id is None:
        return None
    user = await session.get(User, user_id)
    if user is None:
        raise DataIntegrityError(f"oauth account {provider}:{provider_user_id} references missing user {user_id}")
    return user


async def find_or_create_user(
    session: AsyncSession,
    provider: str,
    provider_user_id: str,
    email: str,
    name: str | None = None,
    picture: str | None = None,
) -> User:
    """
    Return the user linked to (provider, provider_user_id), creating it on first login.
    Existing users are returned as stored: name/picture are not refreshed from the new profile.
    """
    user = await _linked_user(session, provider, provider_user_id)
    if user is not None:
        return user
    try:
        async with session.begin_nested():
            user = User(email=email, name=name or None, picture=picture or None)
            session.add(user)
            await session.flush()
            session.add(
                OAuthAccount(
                    user_id=user.id,
                    provider=provider,
                    provider_user_id=provider_user_id,
                    email=email,
                )
            )
            await session.flush()
    except IntegrityError:
        # Concurrent first login for the same identity won the insert; use its user
        logger.info("OAuth account %s:%s created concurrently; reusing it", provider, provider_user_id)
        user = await _linked_user(session, provider, provider_user_id)
        if user is None:
            raise
        return user
    logger.info("Created user %s via %s login", user.id, provider)
    return user
