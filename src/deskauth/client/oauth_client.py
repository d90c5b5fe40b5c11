"""Complete interactive OAuth2/OIDC client for desktop applications.

Coordinates planning, optional pushed authorization, the embedded browser
flow and token exchange.
"""

from __future__ import annotations

import logging
import re

from deskauth.browser.surface import BrowserSurfaceConfig, BrowserSurfaceFactory
from deskauth.client.models.discovery import OpenIDProviderMetadata
from deskauth.client.models.errors import ParameterValidationError
from deskauth.client.models.flow import (
    AuthorizationFlowResult,
    FlowRequest,
    PlannedRequest,
    PushedAuthorizationResponse,
)
from deskauth.client.models.tokens import (
    RefreshTokenRequest,
    TokenRequest,
    TokenResponse,
)
from deskauth.client.primitives.discovery import OIDCDiscovery
from deskauth.client.services.classifier import (
    FlowCompletionClassifier,
    completion_pattern_for_redirect,
)
from deskauth.client.services.dispatcher import AuthorizationDispatcher
from deskauth.client.services.interactive import InteractiveAuthorization
from deskauth.client.services.planner import RequestPlanner
from deskauth.client.services.tokens import OAuth2TokenManager

logger = logging.getLogger(__name__)


class OAuth2Client:
    """Interactive OAuth2/OIDC client.

    The host application supplies ``surface_factory``, which opens an
    embedded browser window for a BrowserSurfaceConfig. Every call to
    ``authorize`` plans fresh state, nonce and PKCE material, so concurrent
    flows never share security parameters.
    """

    def __init__(
        self,
        surface_factory: BrowserSurfaceFactory,
        *,
        enable_os_sso: bool = False,
        profile_directory: str | None = None,
        timeout: float = 30.0,
        client_auth_method: str = "client_secret_post",
    ):
        """Initialize the client.

        Args:
            surface_factory: Creates a browser surface for each flow
            enable_os_sso: Let the embedded browser sign in with the OS
                account
            profile_directory: Browser user-data directory
            timeout: HTTP request timeout for PAR, token and discovery calls
            client_auth_method: How client secrets are sent to the PAR and
                token endpoints
        """
        self.surface_factory = surface_factory
        self.enable_os_sso = enable_os_sso
        self.profile_directory = profile_directory
        self.client_auth_method = client_auth_method

        # Initialize service components
        self.planner = RequestPlanner()
        self.dispatcher = AuthorizationDispatcher(timeout=timeout)
        self.token_manager = OAuth2TokenManager(
            timeout=timeout, client_auth_method=client_auth_method
        )
        self.discovery = OIDCDiscovery(timeout=timeout)

    def plan(self, flow_request: FlowRequest) -> PlannedRequest:
        """Plan an authorization request without running it."""
        return self.planner.plan(flow_request)

    def build_authorization_url(
        self, flow_request: FlowRequest
    ) -> tuple[str, PlannedRequest]:
        """Plan a request and build its direct authorization URL.

        Returns:
            Tuple of (authorization_url, planned_request); keep the planned
            request for state validation and the token exchange
        """
        planned = self.planner.plan(flow_request)
        return self.dispatcher.build_authorization_url(planned), planned

    async def push_authorization_request(
        self,
        par_endpoint: str,
        flow_request: FlowRequest,
        client_secret: str | None = None,
    ) -> tuple[PushedAuthorizationResponse, PlannedRequest]:
        """Plan a request and push it to a PAR endpoint.

        The caller composes the authorization URL from ``request_uri``, for
        example with ``dispatcher.build_request_uri_authorization_url``.
        """
        planned = self.planner.plan(flow_request)
        par_response = await self.dispatcher.push_authorization_request(
            par_endpoint, planned, client_secret, self.client_auth_method
        )
        return par_response, planned

    async def authorize(
        self,
        flow_request: FlowRequest,
        *,
        completion_pattern: str | re.Pattern[str] | None = None,
        par_endpoint: str | None = None,
        client_secret: str | None = None,
        flow_timeout: float | None = None,
    ) -> AuthorizationFlowResult:
        """Run a complete interactive authorization flow.

        Performs the flow:
        1. Plan state, nonce and PKCE
        2. Push the request to the PAR endpoint, if one is given
        3. Open a browser surface on the authorization URL
        4. Wait for the terminal redirect and parse it

        Args:
            flow_request: Caller intent for the flow
            completion_pattern: Regex marking the terminal navigation.
                Defaults to the redirect URI prefix or an error redirect when
                a redirect_uri is set, otherwise to error redirects only.
            par_endpoint: Pushed authorization request endpoint
            client_secret: Secret for confidential clients using PAR
            flow_timeout: Seconds before the window is force-closed

        Returns:
            AuthorizationFlowResult with the provider's parameters and the
            generated state, nonce and code_verifier. Provider errors are in
            the result, not raised.

        Raises:
            UserCancelledError: If the window closed before completion
            TransportError, HttpStatusError: If the PAR request failed
        """
        planned = self.planner.plan(flow_request)

        if par_endpoint:
            logger.debug("Pushing authorization request")
            par_response = await self.dispatcher.push_authorization_request(
                par_endpoint, planned, client_secret, self.client_auth_method
            )
            authorization_url = self.dispatcher.build_request_uri_authorization_url(
                flow_request.authorization_endpoint,
                flow_request.client_id,
                par_response.request_uri,
            )
        else:
            authorization_url = self.dispatcher.build_authorization_url(planned)

        if completion_pattern is None and flow_request.redirect_uri:
            completion_pattern = completion_pattern_for_redirect(
                flow_request.redirect_uri
            )

        surface = self.surface_factory(
            BrowserSurfaceConfig(
                user_agent=flow_request.user_agent,
                profile_directory=self.profile_directory,
                enable_os_sso=self.enable_os_sso,
            )
        )
        interactive = InteractiveAuthorization(
            surface,
            FlowCompletionClassifier(completion_pattern),
            response_mode=flow_request.response_mode,
            timeout=flow_timeout,
        )

        logger.info(f"Starting interactive authorization for {flow_request.client_id}")
        result = await interactive.run(authorization_url)

        return AuthorizationFlowResult(
            result=result,
            state=planned.state,
            nonce=planned.nonce,
            code_verifier=planned.code_verifier,
        )

    async def exchange_code(
        self,
        token_endpoint: str,
        flow_request: FlowRequest,
        flow_result: AuthorizationFlowResult,
        client_secret: str | None = None,
    ) -> TokenResponse:
        """Exchange the authorization code of a completed flow for tokens.

        Raises:
            ParameterValidationError: If the flow result carries no code
        """
        code = flow_result.result.get("code")
        if not code:
            raise ParameterValidationError(
                "Authorization result has no code to exchange"
            )

        return await self.token_manager.exchange_code_for_token(
            TokenRequest(
                token_endpoint=token_endpoint,
                code=code,
                client_id=flow_request.client_id,
                redirect_uri=flow_request.redirect_uri,
                code_verifier=flow_result.code_verifier,
                client_secret=client_secret,
            )
        )

    async def refresh_token(
        self,
        token_endpoint: str,
        client_id: str,
        refresh_token: str,
        client_secret: str | None = None,
        scope: str | None = None,
    ) -> TokenResponse:
        """Refresh an access token."""
        return await self.token_manager.refresh_access_token(
            RefreshTokenRequest(
                token_endpoint=token_endpoint,
                refresh_token=refresh_token,
                client_id=client_id,
                client_secret=client_secret,
                scope=scope,
            )
        )

    async def discover(self, issuer: str) -> OpenIDProviderMetadata:
        """Fetch OpenID provider metadata for an issuer."""
        return await self.discovery.fetch_provider_metadata(issuer)

    async def close(self) -> None:
        """Close all service connections."""
        await self.dispatcher.close()
        await self.token_manager.close()
        await self.discovery.close()
