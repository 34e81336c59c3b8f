"""FastAPI dependencies: current user from the session cookie."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.auth import validate_session
from app.db.session import get_db
from app.models.user import User


def get_session_id(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name) or None


async def get_current_user(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    session_id = get_session_id(request)
    if not session_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = await validate_session(session, session_id)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid session")
    return user
