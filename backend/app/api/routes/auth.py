"""Auth: who am I, logout."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_session_id
from app.core.auth import clear_session_cookie, delete_session
from app.db.session import get_db
from app.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class UserOut(BaseModel):
    id: str
    email: str
    name: str | None = None
    picture: str | None = None


class MeResponse(BaseModel):
    user: UserOut


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current authenticated user",
    responses={
        401: {"description": "Not authenticated or invalid session"},
    },
)
async def me(user: Annotated[User, Depends(get_current_user)]) -> MeResponse:
    return MeResponse(user=UserOut(**user.to_dict()))


@router.post("/logout", summary="Delete the current session and clear its cookie")
async def logout(
    request: Request,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Always succeeds; a missing or unknown session is ignored."""
    session_id = get_session_id(request)
    if session_id:
        await delete_session(session, session_id)
        await session.commit()
    clear_session_cookie(response)
    return {"success": True}
