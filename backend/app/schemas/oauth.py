"""Pydantic schemas for OAuth provider payloads (token endpoint, profile endpoints)."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ProviderName = Literal["google", "microsoft"]


class TokenResponse(BaseModel):
    """Authorization-code grant response. Only access_token is required by the login flow."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str | None = None
    expires_in: int | None = None
    scope: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None


class GoogleProfile(BaseModel):
    """https://www.googleapis.com/oauth2/v2/userinfo"""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    name: str | None = None
    picture: str | None = None
    verified_email: bool | None = None


class MicrosoftProfile(BaseModel):
    """https://graph.microsoft.com/v1.0/me. No picture URL; email may only be in userPrincipalName."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    mail: str | None = None
    user_principal_name: str | None = Field(None, alias="userPrincipalName")
    display_name: str | None = Field(None, alias="displayName")

    @model_validator(mode="after")
    def _require_email(self) -> "MicrosoftProfile":
        if not (self.mail or self.user_principal_name):
            raise ValueError("Microsoft profile has neither mail nor userPrincipalName")
        return self

    @property
    def email(self) -> str:
        return self.mail or self.user_principal_name or ""


class OAuthProfile(BaseModel):
    """Provider-independent identity used by find_or_create_user."""

    provider: ProviderName
    provider_user_id: str
    email: str
    name: str | None = None
    picture: str | None = None
