"""OpenID Connect discovery primitive.

Fetches OpenID Provider metadata so callers can find the authorization,
token, PAR and JWKS endpoints of an issuer.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from deskauth.client.models.discovery import OpenIDProviderMetadata
from deskauth.client.models.errors import (
    DiscoveryError,
    HttpStatusError,
    TransportError,
)
from deskauth.client.primitives.http import parse_error_body

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/openid-configuration"


def build_discovery_url(issuer_or_url: str) -> str:
    """Build the discovery document URL for an issuer.

    A URL that already points at the well-known document is used as is.
    """
    if WELL_KNOWN_PATH in issuer_or_url:
        return issuer_or_url
    return issuer_or_url.rstrip("/") + WELL_KNOWN_PATH


class OIDCDiscovery:
    """Retrieves OpenID Provider metadata."""

    def __init__(self, timeout: float = 30.0):
        """Initialize OIDC discovery.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def fetch_provider_metadata(
        self, issuer_or_url: str
    ) -> OpenIDProviderMetadata:
        """Fetch and parse the provider metadata document.

        Args:
            issuer_or_url: Issuer identifier, or the full discovery URL

        Returns:
            OpenIDProviderMetadata for the issuer

        Raises:
            TransportError: If the request could not be sent
            HttpStatusError: If the server did not answer with 200
            DiscoveryError: If the document is not valid provider metadata
        """
        discovery_url = build_discovery_url(issuer_or_url)
        logger.debug(f"Fetching OpenID provider metadata from {discovery_url}")

        try:
            response = await self._http_client.get(
                discovery_url, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error during discovery: {e}") from e

        if response.status_code != 200:
            raise HttpStatusError(
                f"Discovery failed ({response.status_code}) at {discovery_url}",
                status_code=response.status_code,
                error_body=parse_error_body(response),
            )

        try:
            metadata = OpenIDProviderMetadata(**response.json())
        except (ValueError, TypeError, ValidationError) as e:
            raise DiscoveryError(f"Invalid provider metadata: {e}") from e

        logger.info(f"Discovered OpenID provider {metadata.issuer}")
        return metadata

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
