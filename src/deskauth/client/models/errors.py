"""Exception hierarchy for interactive OAuth2/OIDC flows.

Provides specific exception types for different failure modes to enable
precise error handling. Errors reported by the identity provider in a
redirect or token response are returned as data, not raised.
"""

from __future__ import annotations

from typing import Any


class OAuth2Error(Exception):
    """Base exception for all OAuth2/OIDC related errors."""

    pass


class ParameterValidationError(OAuth2Error, ValueError):
    """Raised when flow parameters are malformed or cannot be reconciled."""

    pass


class UnsupportedChallengeMethodError(ParameterValidationError):
    """Raised when a PKCE code challenge method is neither S256 nor plain."""

    def __init__(self, method: str):
        super().__init__(f"Unsupported code_challenge_method: {method!r}")
        self.method = method


class TransportError(OAuth2Error):
    """Raised when an HTTP request fails before a response is received.

    The underlying httpx exception is chained as ``__cause__``.
    """

    pass


class HttpStatusError(OAuth2Error):
    """Raised when an endpoint answers with a non-success status code.

    Keeps the parsed error body so callers can inspect ``error`` and
    ``error_description`` as sent by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_body: dict[str, Any] | str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body

    @property
    def error(self) -> str | None:
        if isinstance(self.error_body, dict):
            return self.error_body.get("error")
        return None

    @property
    def error_description(self) -> str | None:
        if isinstance(self.error_body, dict):
            return self.error_body.get("error_description")
        return None


class PushedAuthorizationError(OAuth2Error):
    """Raised when a PAR endpoint returns an unusable success payload."""

    pass


class UserCancelledError(OAuth2Error):
    """Raised when the browser surface closes before the flow completed."""

    pass


class StateValidationError(OAuth2Error):
    """Raised when the state echoed by the identity provider is missing or wrong.

    This could indicate a CSRF attack or an authorization server issue.
    """

    pass


class NonceValidationError(OAuth2Error):
    """Raised when an ID token nonce does not match the requested nonce."""

    pass


class DiscoveryError(OAuth2Error):
    """Raised when OpenID provider metadata cannot be parsed."""

    pass


class TokenError(OAuth2Error):
    """Raised when a token endpoint response cannot be parsed."""

    pass


class JWTDecodeError(OAuth2Error):
    """Raised when a JSON Web Token is malformed or fails verification."""

    pass
