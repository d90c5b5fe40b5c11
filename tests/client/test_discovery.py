"""Tests for OpenID provider discovery."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from deskauth.client.models.errors import DiscoveryError, HttpStatusError, TransportError
from deskauth.client.primitives.discovery import OIDCDiscovery, build_discovery_url

METADATA = {
    "issuer": "https://login.example.com",
    "authorization_endpoint": "https://login.example.com/authorize",
    "token_endpoint": "https://login.example.com/token",
    "jwks_uri": "https://login.example.com/jwks",
    "pushed_authorization_request_endpoint": "https://login.example.com/par",
    "response_types_supported": ["code", "id_token", "code id_token"],
    "code_challenge_methods_supported": ["S256"],
    "claims_supported": ["sub", "email"],
}


class TestDiscoveryUrl:
    def test_issuer_gets_well_known_suffix(self):
        assert build_discovery_url("https://login.example.com/tenant/") == (
            "https://login.example.com/tenant/.well-known/openid-configuration"
        )

    def test_full_discovery_url_is_kept(self):
        url = "https://login.example.com/.well-known/openid-configuration?p=x"

        assert build_discovery_url(url) == url


class TestFetchProviderMetadata:
    def setup_method(self):
        self.discovery = OIDCDiscovery()
        self.discovery._http_client = AsyncMock()

    def mock_get(self, status_code, json_data):
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.json.return_value = json_data
        self.discovery._http_client.get.return_value = mock_response

    async def test_successful_discovery(self):
        # Arrange
        self.mock_get(200, METADATA)

        # Act
        metadata = await self.discovery.fetch_provider_metadata(
            "https://login.example.com"
        )

        # Assert
        assert metadata.issuer == "https://login.example.com"
        assert metadata.pushed_authorization_request_endpoint == (
            "https://login.example.com/par"
        )
        assert metadata.supports_pkce("S256")
        assert not metadata.supports_pkce("plain")
        assert metadata.model_extra["claims_supported"] == ["sub", "email"]

        call_args = self.discovery._http_client.get.call_args
        assert call_args[0][0] == (
            "https://login.example.com/.well-known/openid-configuration"
        )

    async def test_not_found_raises_http_status_error(self):
        self.mock_get(404, {"error": "not_found"})

        with pytest.raises(HttpStatusError) as exc_info:
            await self.discovery.fetch_provider_metadata("https://login.example.com")

        assert exc_info.value.status_code == 404

    async def test_invalid_metadata_raises_discovery_error(self):
        self.mock_get(200, {"issuer": "https://login.example.com"})

        with pytest.raises(DiscoveryError):
            await self.discovery.fetch_provider_metadata("https://login.example.com")

    async def test_network_error_raises_transport_error(self):
        self.discovery._http_client.get.side_effect = httpx.ConnectError("down")

        with pytest.raises(TransportError):
            await self.discovery.fetch_provider_metadata("https://login.example.com")
