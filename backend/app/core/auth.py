"""Opaque session tokens: issue, validate, revoke, sweep expired; session cookie helpers."""

import secrets
import string
import time

from fastapi import Response
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import User
from app.models.user_session import UserSession

SESSION_TOKEN_BYTES = 48
_HEX_DIGITS = frozenset(string.hexdigits)


def _now() -> int:
    return int(time.time())


def generate_session_token() -> str:
    """Hex-encoded random token (96 chars for 48 bytes)."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def _is_well_formed(session_id: str | None) -> bool:
    if not session_id or len(session_id) != SESSION_TOKEN_BYTES * 2:
        return False
    return all(c in _HEX_DIGITS for c in session_id)


async def create_session(session: AsyncSession, user_id: str, now: int | None = None) -> str:
    """Store a new session for user_id and return its token. Lifetime is fixed; it is never extended."""
    token = generate_session_token()
    issued_at = _now() if now is None else now
    session.add(
        UserSession(
            id=token,
            user_id=user_id,
            expires_at=issued_at + settings.session_duration_seconds,
        )
    )
    await session.flush()
    return token


async def validate_session(session: AsyncSession, session_id: str | None, now: int | None = None) -> User | None:
    """Return the session's user, or None for a missing, expired or malformed token."""
    if not _is_well_formed(session_id):
        return None
    current = _now() if now is None else now
    r = await session.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.id == session_id, UserSession.expires_at > current)
    )
    return r.scalar_one_or_none()


async def delete_session(session: AsyncSession, session_id: str | None) -> None:
    """Remove the session row if present. Unknown ids are not an error."""
    if not session_id:
        return
    await session.execute(delete(UserSession).where(UserSession.id == session_id))


async def cleanup_expired_sessions(session: AsyncSession, now: int | None = None) -> int:
    """Delete every session with expires_at <= now. Returns number of rows removed."""
    current = _now() if now is None else now
    r = await session.execute(delete(UserSession).where(UserSession.expires_at <= current))
    return r.rowcount or 0


def set_session_cookie(response: Response, session_id: str, max_age: int | None = None) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_duration_seconds if max_age is None else max_age,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the cookie on the client: same attributes, Max-Age=0."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value="",
        max_age=0,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )
