"""Tests for direct and pushed authorization request dispatch."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from deskauth.client.models.errors import (
    HttpStatusError,
    ParameterValidationError,
    PushedAuthorizationError,
    TransportError,
)
from deskauth.client.models.flow import FlowRequest
from deskauth.client.services.dispatcher import AuthorizationDispatcher
from deskauth.client.services.planner import RequestPlanner


def plan(**overrides):
    values = {
        "authorization_endpoint": "https://login.example.com/authorize",
        "client_id": "desktop-client",
        "redirect_uri": "https://app.example.com/cb",
        "scope": "openid profile",
    }
    values.update(overrides)
    return RequestPlanner().plan(FlowRequest(**values))


class TestDirectMode:
    def setup_method(self):
        self.dispatcher = AuthorizationDispatcher()

    def test_authorization_url_carries_planned_parameters(self):
        # Arrange
        planned = plan(custom_parameters={"prompt": "select_account"})

        # Act
        url = self.dispatcher.build_authorization_url(planned)

        # Assert
        parsed = urlparse(url)
        query_params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://login.example.com/authorize"
        )
        assert query_params["response_type"] == ["code"]
        assert query_params["client_id"] == ["desktop-client"]
        assert query_params["redirect_uri"] == ["https://app.example.com/cb"]
        assert query_params["state"] == [planned.state]
        assert query_params["nonce"] == [planned.nonce]
        assert query_params["code_challenge"] == [planned.pkce.code_challenge]
        assert query_params["code_challenge_method"] == ["S256"]
        assert query_params["prompt"] == ["select_account"]
        assert "code_verifier" not in query_params

    def test_values_are_percent_encoded(self):
        url = self.dispatcher.build_authorization_url(plan())

        assert "scope=openid%20profile" in url
        assert "redirect_uri=https%3A%2F%2Fapp.example.com%2Fcb" in url

    def test_existing_endpoint_query_is_preserved(self):
        planned = plan(
            authorization_endpoint="https://login.example.com/authorize?p=B2C_1_signin"
        )

        url = self.dispatcher.build_authorization_url(planned)

        query_params = parse_qs(urlparse(url).query)
        assert query_params["p"] == ["B2C_1_signin"]
        assert query_params["client_id"] == ["desktop-client"]

    def test_request_uri_authorization_url(self):
        url = self.dispatcher.build_request_uri_authorization_url(
            "https://login.example.com/authorize",
            "desktop-client",
            "urn:ietf:params:oauth:request_uri:abc",
        )

        query_params = parse_qs(urlparse(url).query)
        assert query_params == {
            "client_id": ["desktop-client"],
            "request_uri": ["urn:ietf:params:oauth:request_uri:abc"],
        }


class TestPushedMode:
    def setup_method(self):
        self.dispatcher = AuthorizationDispatcher()
        self.dispatcher._http_client = AsyncMock()
        self.par_endpoint = "https://login.example.com/par"

    def mock_response(self, status_code, json_data=None, text=""):
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.text = text
        if isinstance(json_data, Exception):
            mock_response.json.side_effect = json_data
        else:
            mock_response.json.return_value = json_data
        self.dispatcher._http_client.post.return_value = mock_response

    async def test_successful_push_returns_request_uri_and_expiry(self):
        # Arrange
        planned = plan()
        self.mock_response(
            201,
            {"request_uri": "urn:ietf:params:oauth:request_uri:xyz", "expires_in": 60},
        )
        before = datetime.now(timezone.utc)

        # Act
        par_response = await self.dispatcher.push_authorization_request(
            self.par_endpoint, planned
        )

        # Assert
        assert par_response.request_uri == "urn:ietf:params:oauth:request_uri:xyz"
        assert par_response.expires_in == 60
        assert before + timedelta(seconds=60) <= par_response.expiry_datetime
        assert par_response.expiry_datetime <= datetime.now(timezone.utc) + timedelta(
            seconds=60
        )

        self.dispatcher._http_client.post.assert_awaited_once()
        call_args = self.dispatcher._http_client.post.call_args
        assert call_args[0][0] == self.par_endpoint
        assert call_args[1]["data"] == planned.parameters
        assert call_args[1]["headers"]["Content-Type"] == (
            "application/x-www-form-urlencoded"
        )

    async def test_client_secret_post(self):
        self.mock_response(201, {"request_uri": "urn:x", "expires_in": 60})

        await self.dispatcher.push_authorization_request(
            self.par_endpoint, plan(), client_secret="s3cret"
        )

        form_data = self.dispatcher._http_client.post.call_args[1]["data"]
        assert form_data["client_secret"] == "s3cret"

    async def test_client_secret_basic(self):
        self.mock_response(201, {"request_uri": "urn:x", "expires_in": 60})

        await self.dispatcher.push_authorization_request(
            self.par_endpoint,
            plan(),
            client_secret="s3cret",
            client_auth_method="client_secret_basic",
        )

        call_kwargs = self.dispatcher._http_client.post.call_args[1]
        assert "client_secret" not in call_kwargs["data"]
        assert isinstance(call_kwargs["auth"], httpx.BasicAuth)

    async def test_unknown_client_auth_method_rejected(self):
        with pytest.raises(ParameterValidationError):
            await self.dispatcher.push_authorization_request(
                self.par_endpoint, plan(), client_auth_method="private_key_jwt"
            )

    async def test_network_failure_raises_transport_error(self):
        self.dispatcher._http_client.post.side_effect = httpx.ConnectError(
            "connection refused"
        )

        with pytest.raises(TransportError) as exc_info:
            await self.dispatcher.push_authorization_request(self.par_endpoint, plan())

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        self.dispatcher._http_client.post.assert_awaited_once()

    async def test_error_status_raises_with_parsed_body(self):
        self.mock_response(
            400,
            {"error": "invalid_request", "error_description": "bad redirect_uri"},
        )

        with pytest.raises(HttpStatusError) as exc_info:
            await self.dispatcher.push_authorization_request(self.par_endpoint, plan())

        assert exc_info.value.status_code == 400
        assert exc_info.value.error == "invalid_request"
        assert exc_info.value.error_description == "bad redirect_uri"

    async def test_non_json_error_status_keeps_text(self):
        self.mock_response(502, ValueError("no json"), text="Bad Gateway")

        with pytest.raises(HttpStatusError) as exc_info:
            await self.dispatcher.push_authorization_request(self.par_endpoint, plan())

        assert exc_info.value.error_body == "Bad Gateway"
        assert exc_info.value.error is None

    async def test_success_without_request_uri_raises(self):
        self.mock_response(201, {"expires_in": 60})

        with pytest.raises(PushedAuthorizationError):
            await self.dispatcher.push_authorization_request(self.par_endpoint, plan())
