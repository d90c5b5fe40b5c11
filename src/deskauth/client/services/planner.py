"""Authorization request planning for OAuth2 and OpenID Connect.

Turns a caller's FlowRequest into the exact parameter set sent to the
authorization server: decides the protocol mode, binds state and nonce,
attaches PKCE material and merges opaque custom parameters.
"""

from __future__ import annotations

import logging

from deskauth.client.models.errors import UnsupportedChallengeMethodError
from deskauth.client.models.flow import FlowRequest, PlannedRequest, ProtocolMode
from deskauth.client.models.security import (
    CODE_CHALLENGE_METHODS,
    PKCEParameters,
    ReservedSecurityParameters,
    SecurityContext,
)
from deskauth.client.primitives.pkce import PKCEManager
from deskauth.client.primitives.security import generate_nonce, generate_state

logger = logging.getLogger(__name__)

# Taken from the FlowRequest only, never from custom parameters.
PLANNED_KEYS = frozenset(
    ("response_type", "client_id", "redirect_uri", "response_mode")
)


class RequestPlanner:
    """Plans authorization requests for code, implicit and hybrid flows.

    Planning is pure apart from drawing randomness: no network I/O happens
    here, and each call produces independent security material.
    """

    def __init__(self, pkce_manager: PKCEManager | None = None):
        self._pkce_manager = pkce_manager or PKCEManager()

    def plan(self, flow_request: FlowRequest) -> PlannedRequest:
        """Plan the authorization request body for a flow.

        Args:
            flow_request: Caller intent for the flow

        Returns:
            PlannedRequest: mode, security context, PKCE material and the
            outgoing parameters
        """
        reserved, opaque = ReservedSecurityParameters.split(
            flow_request.custom_parameters
        )

        mode = self.decide_mode(flow_request)
        scope = flow_request.scope

        nonce = None
        if mode is ProtocolMode.OIDC:
            if "openid" not in flow_request.scope_tokens:
                scope = f"{scope} openid" if scope else "openid"
                logger.warning(
                    f"response_type {flow_request.response_type!r} requires "
                    f"OpenID Connect, adding 'openid' to scope: {scope!r}"
                )
            nonce = reserved.nonce if reserved.nonce is not None else generate_nonce()

        state = reserved.state if reserved.state is not None else generate_state()
        security = SecurityContext(state=state, nonce=nonce)

        parameters: dict[str, str] = {
            "response_type": flow_request.response_type,
            "client_id": flow_request.client_id,
            "state": state,
        }
        if flow_request.redirect_uri:
            parameters["redirect_uri"] = flow_request.redirect_uri
        if scope:
            parameters["scope"] = scope
        if nonce is not None:
            parameters["nonce"] = nonce
        if flow_request.response_mode is not None:
            parameters["response_mode"] = flow_request.response_mode.value

        pkce = self._plan_pkce(flow_request, reserved)
        if pkce is not None:
            parameters["code_challenge"] = pkce.code_challenge
            parameters["code_challenge_method"] = pkce.code_challenge_method

        # Reserved keys were stripped by split(), so opaque values never
        # overwrite state, nonce or PKCE parameters.
        for key, value in opaque.items():
            if key in PLANNED_KEYS:
                logger.warning(
                    f"Ignoring custom parameter {key!r}, set it on the flow "
                    "request instead"
                )
                continue
            if key in parameters:
                logger.debug(f"Custom parameter {key!r} overrides planned value")
            parameters[key] = value

        logger.debug(
            f"Planned {mode.value} request for client {flow_request.client_id} "
            f"(response_type={flow_request.response_type!r}, "
            f"pkce={'yes' if pkce else 'no'})"
        )

        return PlannedRequest(
            flow_request=flow_request,
            mode=mode,
            security=security,
            parameters=parameters,
            pkce=pkce,
        )

    @staticmethod
    def decide_mode(flow_request: FlowRequest) -> ProtocolMode:
        """Decide between plain OAuth2 and OpenID Connect.

        Pure ``token`` flows, and ``code`` flows whose scope lacks
        ``openid``, are OAuth2. Everything else needs an ID token and is
        OIDC.
        """
        if flow_request.response_type == "token":
            return ProtocolMode.OAUTH2
        if (
            flow_request.response_type == "code"
            and "openid" not in flow_request.scope_tokens
        ):
            return ProtocolMode.OAUTH2
        return ProtocolMode.OIDC

    def _plan_pkce(
        self, flow_request: FlowRequest, reserved: ReservedSecurityParameters
    ) -> PKCEParameters | None:
        if not flow_request.use_pkce:
            return None

        if "code" not in flow_request.response_type_tokens:
            logger.warning(
                f"PKCE does not apply to response_type "
                f"{flow_request.response_type!r}, skipping code_challenge"
            )
            return None

        if reserved.code_challenge is not None:
            method = reserved.code_challenge_method
            if method is None:
                method = "S256"
                logger.warning(
                    "code_challenge supplied without code_challenge_method, "
                    "assuming S256"
                )
            elif method not in CODE_CHALLENGE_METHODS:
                raise UnsupportedChallengeMethodError(method)
            if reserved.code_verifier is None:
                logger.debug(
                    "code_challenge supplied without code_verifier, the caller "
                    "keeps the verifier for the token exchange"
                )
            return PKCEParameters(
                code_challenge=reserved.code_challenge,
                code_challenge_method=method,
                code_verifier=reserved.code_verifier,
            )

        return self._pkce_manager.generate_parameters(
            reserved.code_challenge_method or "S256"
        )
