"""Authorization request dispatch.

Delivers a planned authorization request either directly, as a URL for the
browser surface to open, or pushed to a Pushed Authorization Request
endpoint (RFC 9126) that returns a ``request_uri`` reference.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from deskauth.client.models.errors import (
    HttpStatusError,
    ParameterValidationError,
    PushedAuthorizationError,
    TransportError,
)
from deskauth.client.models.flow import (
    PlannedRequest,
    PushedAuthorizationResponse,
    expiry_from_expires_in,
)
from deskauth.client.primitives.http import (
    append_query,
    is_success_status,
    parse_error_body,
)

logger = logging.getLogger(__name__)

CLIENT_AUTH_METHODS = ("client_secret_post", "client_secret_basic")


class AuthorizationDispatcher:
    """Sends planned authorization requests.

    Direct mode performs no I/O. Pushed mode issues a single form-encoded
    POST and is never retried; retry policy belongs to the caller.
    """

    def __init__(self, timeout: float = 30.0):
        """Initialize the dispatcher.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    def build_authorization_url(self, planned: PlannedRequest) -> str:
        """Build the authorization URL the browser surface navigates to."""
        return append_query(
            planned.flow_request.authorization_endpoint, planned.parameters
        )

    def build_request_uri_authorization_url(
        self, authorization_endpoint: str, client_id: str, request_uri: str
    ) -> str:
        """Build the authorization URL that references a pushed request."""
        return append_query(
            authorization_endpoint,
            {"client_id": client_id, "request_uri": request_uri},
        )

    async def push_authorization_request(
        self,
        par_endpoint: str,
        planned: PlannedRequest,
        client_secret: str | None = None,
        client_auth_method: str = "client_secret_post",
    ) -> PushedAuthorizationResponse:
        """Push the planned request to a PAR endpoint.

        Args:
            par_endpoint: Pushed authorization request endpoint URL
            planned: Planned authorization request
            client_secret: Optional secret for confidential clients
            client_auth_method: ``client_secret_post`` or
                ``client_secret_basic``

        Returns:
            PushedAuthorizationResponse with ``expiry_datetime`` computed
            from ``expires_in``

        Raises:
            TransportError: If the request could not be sent
            HttpStatusError: If the endpoint answered with a non-2xx status
            PushedAuthorizationError: If the success payload is unusable
        """
        if client_auth_method not in CLIENT_AUTH_METHODS:
            raise ParameterValidationError(
                f"Unsupported client_auth_method: {client_auth_method!r}"
            )

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        form_data = dict(planned.parameters)
        auth = None
        if client_secret is not None:
            if client_auth_method == "client_secret_basic":
                auth = httpx.BasicAuth(planned.flow_request.client_id, client_secret)
            else:
                form_data["client_secret"] = client_secret

        logger.debug(
            f"Pushing authorization request to {par_endpoint} for client "
            f"{planned.flow_request.client_id}"
        )

        try:
            if auth is not None:
                response = await self._http_client.post(
                    par_endpoint, data=form_data, headers=headers, auth=auth
                )
            else:
                response = await self._http_client.post(
                    par_endpoint, data=form_data, headers=headers
                )
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error during pushed authorization request: {e}"
            ) from e

        if not is_success_status(response.status_code):
            error_body = parse_error_body(response)
            logger.warning(
                f"Pushed authorization request failed with {response.status_code}: "
                f"{error_body}"
            )
            raise HttpStatusError(
                f"Pushed authorization request failed ({response.status_code})",
                status_code=response.status_code,
                error_body=error_body,
            )

        return self._parse_par_response(response)

    def _parse_par_response(
        self, response: httpx.Response
    ) -> PushedAuthorizationResponse:
        try:
            response_data = response.json()
        except ValueError as e:
            raise PushedAuthorizationError(
                f"Invalid pushed authorization response format: {e}"
            ) from e

        if not isinstance(response_data, dict) or "request_uri" not in response_data:
            raise PushedAuthorizationError(
                "Pushed authorization response missing required request_uri"
            )

        try:
            par_response = PushedAuthorizationResponse(**response_data)
        except ValidationError as e:
            raise PushedAuthorizationError(
                f"Invalid pushed authorization response format: {e}"
            ) from e

        par_response.expiry_datetime = expiry_from_expires_in(par_response.expires_in)
        logger.info(f"Received request_uri {par_response.request_uri}")
        return par_response

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()

