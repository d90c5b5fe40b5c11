"""OAuth2 token exchange and refresh service.

Implements RFC 6749 token endpoint interactions with PKCE (RFC 7636) for
tokens obtained at the end of an interactive flow.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from deskauth.client.models.errors import (
    ParameterValidationError,
    TokenError,
    TransportError,
)
from deskauth.client.models.tokens import (
    RefreshTokenRequest,
    TokenRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

CLIENT_AUTH_METHODS = ("client_secret_post", "client_secret_basic")


class OAuth2TokenManager:
    """Manages OAuth2 token exchange and refresh operations.

    Handles the token endpoint interactions including:
    - Authorization code to access token exchange (RFC 6749 Section 4.1.3)
    - Access token refresh (RFC 6749 Section 6)
    - PKCE code verification (RFC 7636)

    Uses application/x-www-form-urlencoded encoding. Error responses from
    the server are returned as TokenResponse data, not raised.
    """

    def __init__(
        self, timeout: float = 30.0, client_auth_method: str = "client_secret_post"
    ):
        """Initialize OAuth token manager.

        Args:
            timeout: HTTP request timeout in seconds
            client_auth_method: How a client_secret is sent, either in the
                form body or as HTTP Basic credentials
        """
        if client_auth_method not in CLIENT_AUTH_METHODS:
            raise ParameterValidationError(
                f"Unsupported client_auth_method: {client_auth_method!r}"
            )
        self.timeout = timeout
        self.client_auth_method = client_auth_method
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def exchange_code_for_token(
        self, token_request: TokenRequest
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Raises:
            TransportError: If the request could not be sent
            TokenError: If the response cannot be parsed
        """
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")

        form_data = token_request.to_form_data()
        logger.debug(
            f"Token request: grant_type={form_data['grant_type']}, "
            f"client_id={form_data['client_id']}, "
            f"pkce={'yes' if 'code_verifier' in form_data else 'no'}"
        )

        return await self._post(
            token_request.token_endpoint,
            form_data,
            token_request.client_id,
            token_request.client_secret,
        )

    async def refresh_access_token(
        self, refresh_request: RefreshTokenRequest
    ) -> TokenResponse:
        """Refresh an access token using a refresh token.

        Raises:
            TransportError: If the request could not be sent
            TokenError: If the response cannot be parsed
        """
        logger.debug(f"Refreshing access token at {refresh_request.token_endpoint}")

        return await self._post(
            refresh_request.token_endpoint,
            refresh_request.to_form_data(),
            refresh_request.client_id,
            refresh_request.client_secret,
        )

    async def _post(
        self,
        token_endpoint: str,
        form_data: dict[str, str],
        client_id: str,
        client_secret: str | None,
    ) -> TokenResponse:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            if client_secret is not None and (
                self.client_auth_method == "client_secret_basic"
            ):
                response = await self._http_client.post(
                    token_endpoint,
                    data=form_data,
                    headers=headers,
                    auth=httpx.BasicAuth(client_id, client_secret),
                )
            else:
                if client_secret is not None:
                    form_data = {**form_data, "client_secret": client_secret}
                response = await self._http_client.post(
                    token_endpoint, data=form_data, headers=headers
                )
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error during token request: {e}") from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> TokenResponse:
        """Parse token endpoint response into TokenResponse.

        Handles both successful responses (200) and error responses (400+)
        according to RFC 6749 Section 5.

        Raises:
            TokenError: If response cannot be parsed
        """
        try:
            response_data = response.json()
        except ValueError as e:
            raise TokenError(
                f"Invalid token response format ({response.status_code}): {e}"
            ) from e

        if not isinstance(response_data, dict):
            raise TokenError("Token response is not a JSON object")

        if response.status_code == 200:
            if "access_token" not in response_data:
                raise TokenError("Token response missing required access_token")
            logger.info("Token request successful")
        else:
            logger.warning(
                f"Token request failed with {response.status_code}: "
                f"{response_data.get('error', 'unknown_error')} - "
                f"{response_data.get('error_description', 'No description provided')}"
            )

        try:
            token_response = TokenResponse(**response_data)
        except ValidationError as e:
            raise TokenError(f"Invalid token response format: {e}") from e

        token_response.expiry_datetime = token_response.calculate_expiry()
        return token_response

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
