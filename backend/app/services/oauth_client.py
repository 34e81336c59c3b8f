"""
OAuth 2.0 authorization-code clients for Google and Microsoft.
Both providers share one shape: build authorize URL, exchange code, fetch profile.
Calls are single-attempt; any non-2xx or malformed payload raises UpstreamAuthError.
"""
import logging
from abc import ABC, abstractmethod
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.schemas.oauth import GoogleProfile, MicrosoftProfile, OAuthProfile, TokenResponse
from app.services.http_client import get_http_client

logger = logging.getLogger(__name__)


class UpstreamAuthError(Exception):
    """OAuth provider returned an error (or an unusable payload) during login."""

    def __init__(self, provider: str, status_code: int, text: str):
        self.provider = provider
        self.status_code = status_code
        self.text = text
        super().__init__(f"{provider} OAuth request failed ({status_code}): {text}")


class OAuthProvider(ABC):
    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    extra_authorize_params: dict[str, str] = {}
    profile_schema: type[BaseModel]

    def client_credentials(self) -> tuple[str, str]:
        """(client_id, client_secret) from settings, e.g. google_client_id."""
        return getattr(settings, f"{self.name}_client_id"), getattr(settings, f"{self.name}_client_secret")

    def is_configured(self) -> bool:
        client_id, client_secret = self.client_credentials()
        return bool(client_id and client_secret)

    def authorization_url(self, client_id: str, redirect_uri: str) -> str:
        params = {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            **self.extra_authorize_params,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    def _check(self, r: httpx.Response, what: str) -> dict:
        if not r.is_success:
            logger.warning("%s %s failed: %s %s", self.name, what, r.status_code, r.reason_phrase)
            raise UpstreamAuthError(self.name, r.status_code, r.text or r.reason_phrase)
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamAuthError(self.name, r.status_code, f"{what}: response is not JSON") from e
        if not isinstance(data, dict):
            raise UpstreamAuthError(self.name, r.status_code, f"{what}: unexpected payload")
        return data

    async def exchange_code(
        self,
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
    ) -> TokenResponse:
        """Exchange authorization code for tokens (form-encoded POST to the token endpoint)."""
        client = get_http_client()
        r = await client.post(
            self.token_url,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        data = self._check(r, "token exchange")
        try:
            return TokenResponse.model_validate(data)
        except ValidationError as e:
            raise UpstreamAuthError(self.name, r.status_code, "token response missing access_token") from e

    async def fetch_user_info(self, access_token: str) -> OAuthProfile:
        """GET the profile endpoint with the bearer token and normalize it."""
        client = get_http_client()
        r = await client.get(
            self.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        data = self._check(r, "profile fetch")
        try:
            profile = self.profile_schema.model_validate(data)
        except ValidationError as e:
            raise UpstreamAuthError(self.name, r.status_code, f"invalid profile payload: {e.error_count()} errors") from e
        return self._to_profile(profile)

    @abstractmethod
    def _to_profile(self, profile) -> OAuthProfile:
        """Normalize the provider profile payload."""


class GoogleProvider(OAuthProvider):
    name = "google"
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    userinfo_url = "https://www.googleapis.com/oauth2/v2/userinfo"
    scope = "openid email profile"
    extra_authorize_params = {"access_type": "offline", "prompt": "consent"}
    profile_schema = GoogleProfile

    def _to_profile(self, profile: GoogleProfile) -> OAuthProfile:
        return OAuthProfile(
            provider="google",
            provider_user_id=profile.id,
            email=profile.email,
            name=profile.name,
            picture=profile.picture,
        )


class MicrosoftProvider(OAuthProvider):
    name = "microsoft"
    authorize_url = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
    token_url = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
    userinfo_url = "https://graph.microsoft.com/v1.0/me"
    scope = "openid email profile User.Read"
    extra_authorize_params = {"response_mode": "query"}
    profile_schema = MicrosoftProfile

    def _to_profile(self, profile: MicrosoftProfile) -> OAuthProfile:
        # Graph /me has no picture URL (photo is a binary endpoint)
        return OAuthProfile(
            provider="microsoft",
            provider_user_id=profile.id,
            email=profile.email,
            name=profile.display_name,
            picture=None,
        )


PROVIDERS: dict[str, OAuthProvider] = {
    "google": GoogleProvider(),
    "microsoft": MicrosoftProvider(),
}


def get_provider(name: str) -> OAuthProvider | None:
    return PROVIDERS.get(name)
