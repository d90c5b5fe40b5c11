"""Token endpoint models for OAuth2 and OpenID Connect.

Contains token request parameters and token response handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from deskauth.client.models.flow import expiry_from_expires_in


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3).

    ``code_verifier`` is optional: PKCE may have been skipped, or the caller
    delegated PKCE and holds the verifier elsewhere.
    """

    # Required fields first
    token_endpoint: str
    code: str
    client_id: str

    # Optional fields with defaults last
    redirect_uri: str | None = None
    code_verifier: str | None = None  # RFC 7636 PKCE
    client_secret: str | None = None
    grant_type: str = "authorization_code"
    scope: str | None = None

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request."""
        data = {
            "grant_type": self.grant_type,
            "code": self.code,
            "client_id": self.client_id,
        }

        if self.redirect_uri:
            data["redirect_uri"] = self.redirect_uri
        if self.code_verifier:
            data["code_verifier"] = self.code_verifier
        if self.scope:
            data["scope"] = self.scope

        return data


@dataclass(frozen=True)
class RefreshTokenRequest:
    """Refresh token request parameters (RFC 6749 Section 6)."""

    token_endpoint: str
    refresh_token: str
    client_id: str

    client_secret: str | None = None
    grant_type: str = "refresh_token"
    scope: str | None = None

    def to_form_data(self) -> dict[str, str]:
        data = {
            "grant_type": self.grant_type,
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
        }

        if self.scope:
            data["scope"] = self.scope

        return data


class TokenResponse(BaseModel):
    """Token endpoint response (RFC 6749 Section 5, OIDC Core Section 3.1.3.3).

    Represents both successful responses and error responses. Unknown
    members are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    # Success response fields
    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None

    # Error response fields
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    expiry_datetime: datetime | None = None

    def is_success(self) -> bool:
        """Check if token response indicates success."""
        return self.error is None and self.access_token is not None

    def is_error(self) -> bool:
        """Check if token response indicates an error."""
        return self.error is not None

    def calculate_expiry(self) -> datetime | None:
        """Calculate the absolute expiry from expires_in."""
        return expiry_from_expires_in(self.expires_in)
