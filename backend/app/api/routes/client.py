"""Public data for the checklist page: OAuth client config and the exercise schedule."""

from fastapi import APIRouter

from app.config import settings
from app.services.schedule import schedule_payload

router = APIRouter(tags=["client"])


@router.get("/config")
async def client_config() -> dict:
    """Client ids are public; secrets never leave the server."""
    return {
        "googleClientId": settings.google_client_id,
        "microsoftClientId": settings.microsoft_client_id,
        "baseUrl": settings.app_root,
    }


@router.get("/schedule")
async def get_schedule() -> dict:
    return schedule_payload()
