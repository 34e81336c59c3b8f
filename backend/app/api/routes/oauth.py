"""OAuth login: redirect to provider, handle callback (code exchange, profile, user, session)."""

import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.auth import create_session, set_session_cookie
from app.db.session import get_db
from app.services.identity import find_or_create_user
from app.services.oauth_client import OAuthProvider, UpstreamAuthError, get_provider

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/oauth", tags=["oauth"])


def _app_root_redirect(error: str | None = None) -> RedirectResponse:
    url = f"{settings.app_root}/"
    if error:
        url += "?" + urlencode({"error": error})
    return RedirectResponse(url=url, status_code=302)


def _provider_or_404(provider: str) -> OAuthProvider:
    oauth = get_provider(provider)
    if oauth is None:
        raise HTTPException(status_code=404, detail="Unknown OAuth provider")
    return oauth


@router.get("/{provider}/login", summary="Redirect to the provider's authorization page")
async def oauth_login(provider: str) -> RedirectResponse:
    oauth = _provider_or_404(provider)
    if not oauth.is_configured():
        logger.error("%s OAuth client is not configured", provider)
        return _app_root_redirect("not_configured")
    client_id, _ = oauth.client_credentials()
    url = oauth.authorization_url(client_id, settings.oauth_redirect_uri(provider))
    return RedirectResponse(url=url, status_code=302)


@router.get(
    "/{provider}/callback",
    summary="OAuth redirect target: exchange code, resolve user, issue session cookie",
    responses={302: {"description": "Redirect to app root (with ?error=... on failure)"}},
)
async def oauth_callback(
    provider: str,
    session: Annotated[AsyncSession, Depends(get_db)],
    code: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """No session is issued unless every step succeeds; failures redirect with an error flag."""
    oauth = _provider_or_404(provider)
    if error:
        logger.warning("%s OAuth returned error: %s", provider, error)
        return _app_root_redirect("oauth_failed")
    if not code:
        return _app_root_redirect("no_code")
    client_id, client_secret = oauth.client_credentials()
    try:
        tokens = await oauth.exchange_code(code, client_id, client_secret, settings.oauth_redirect_uri(provider))
        profile = await oauth.fetch_user_info(tokens.access_token)
        user = await find_or_create_user(
            session,
            profile.provider,
            profile.provider_user_id,
            profile.email,
            profile.name,
            profile.picture,
        )
        session_id = await create_session(session, user.id)
        await session.commit()
    except UpstreamAuthError as e:
        logger.warning("%s OAuth upstream error: %s", provider, e)
        await session.rollback()
        return _app_root_redirect("oauth_failed")
    except Exception as e:
        logger.exception("%s OAuth login failed: %s", provider, e)
        await session.rollback()
        return _app_root_redirect("oauth_failed")
    logger.info("User %s logged in via %s", user.id, provider)
    response = _app_root_redirect()
    set_session_cookie(response, session_id)
    return response
