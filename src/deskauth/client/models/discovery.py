"""OpenID Provider metadata model (OpenID Connect Discovery 1.0 Section 3)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OpenIDProviderMetadata(BaseModel):
    """Metadata published at ``/.well-known/openid-configuration``.

    Only the members deskauth uses are typed; everything else is kept as
    extra fields.
    """

    model_config = ConfigDict(extra="allow")

    issuer: str
    authorization_endpoint: str
    token_endpoint: str | None = None
    jwks_uri: str | None = None
    userinfo_endpoint: str | None = None
    end_session_endpoint: str | None = None

    # RFC 9126
    pushed_authorization_request_endpoint: str | None = None
    require_pushed_authorization_requests: bool = False

    response_types_supported: list[str] = Field(default_factory=list)
    response_modes_supported: list[str] | None = None
    scopes_supported: list[str] | None = None
    code_challenge_methods_supported: list[str] | None = None
    id_token_signing_alg_values_supported: list[str] | None = None

    def supports_pkce(self, method: str = "S256") -> bool:
        """Check if the provider advertises a PKCE method.

        Providers that omit the member are assumed to support it.
        """
        if self.code_challenge_methods_supported is None:
            return True
        return method in self.code_challenge_methods_supported
