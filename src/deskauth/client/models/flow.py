"""Authorization flow models for OAuth2 and OpenID Connect.

Contains the caller-facing flow request, the planned request produced from
it, and the results handed back once the browser flow completes.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from deskauth.client.models.errors import ParameterValidationError
from deskauth.client.models.security import PKCEParameters, SecurityContext

RESPONSE_TYPE_TOKENS = ("code", "id_token", "token", "none")


class ProtocolMode(str, Enum):
    """Protocol the planned request speaks. Derived, never set by the caller."""

    OAUTH2 = "oauth2"
    OIDC = "oidc"


class ResponseMode(str, Enum):
    """How the authorization server returns the authorization response."""

    QUERY = "query"
    FRAGMENT = "fragment"
    FORM_POST = "form_post"


def parse_response_type(response_type: str) -> tuple[str, ...]:
    """Split a response_type into its tokens, validating the grammar.

    Any combination of ``code``, ``id_token``, ``token`` and ``none`` is
    accepted, each at most once.

    Raises:
        ParameterValidationError: If the value is empty or has unknown or
            repeated tokens
    """
    tokens = tuple(response_type.split()) if response_type else ()
    if not tokens:
        raise ParameterValidationError("response_type must not be empty")

    unknown = [token for token in tokens if token not in RESPONSE_TYPE_TOKENS]
    if unknown:
        raise ParameterValidationError(
            f"Invalid response_type {response_type!r}: unknown value(s) "
            f"{', '.join(unknown)}"
        )
    if len(set(tokens)) != len(tokens):
        raise ParameterValidationError(
            f"Invalid response_type {response_type!r}: repeated values"
        )
    return tokens


def expiry_from_expires_in(
    expires_in: Any, now: datetime | None = None
) -> datetime | None:
    """Calculate an absolute expiry from a relative ``expires_in`` value.

    Returns:
        Timezone-aware UTC datetime, or None if expires_in is missing,
        not a finite number, or too large to represent
    """
    if expires_in is None or isinstance(expires_in, bool):
        return None
    try:
        seconds = float(expires_in)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None

    now = now or datetime.now(timezone.utc)
    try:
        return now + timedelta(seconds=seconds)
    except OverflowError:
        return None


@dataclass(frozen=True)
class FlowRequest:
    """Caller intent for one interactive authorization flow.

    ``custom_parameters`` may pre-seed ``state``, ``nonce``,
    ``code_challenge``, ``code_challenge_method`` and ``code_verifier``;
    every other key is passed to the authorization server untouched.
    ``user_agent`` is only handed to the browser surface.
    """

    authorization_endpoint: str
    client_id: str
    redirect_uri: str | None = None
    response_type: str = "code"
    scope: str | None = None
    use_pkce: bool = True
    response_mode: ResponseMode | None = None
    custom_parameters: Mapping[str, str] = field(default_factory=dict)
    user_agent: str | None = None

    def __post_init__(self) -> None:
        if not self.authorization_endpoint:
            raise ParameterValidationError("authorization_endpoint is required")
        if not self.client_id:
            raise ParameterValidationError("client_id is required")

        # Normalise whitespace so "code  id_token" plans like "code id_token"
        tokens = parse_response_type(self.response_type)
        object.__setattr__(self, "response_type", " ".join(tokens))

        if self.response_mode is not None:
            try:
                mode = ResponseMode(self.response_mode)
            except ValueError as e:
                raise ParameterValidationError(
                    f"Invalid response_mode {self.response_mode!r}: expected "
                    "query, fragment or form_post"
                ) from e
            object.__setattr__(self, "response_mode", mode)

    @property
    def response_type_tokens(self) -> tuple[str, ...]:
        return tuple(self.response_type.split())

    @property
    def scope_tokens(self) -> tuple[str, ...]:
        return tuple(self.scope.split()) if self.scope else ()


@dataclass(frozen=True)
class PlannedRequest:
    """A fully planned authorization request, ready for dispatch.

    ``parameters`` is the exact body sent to the authorization or PAR
    endpoint. It never contains ``code_verifier``.
    """

    flow_request: FlowRequest
    mode: ProtocolMode
    security: SecurityContext
    parameters: dict[str, str]
    pkce: PKCEParameters | None = None

    @property
    def state(self) -> str:
        return self.security.state

    @property
    def nonce(self) -> str | None:
        return self.security.nonce

    @property
    def code_verifier(self) -> str | None:
        return self.pkce.code_verifier if self.pkce else None


@dataclass
class AuthorizationResult:
    """Parameters returned by the identity provider at the end of a flow.

    Owned by the caller once returned. An ``error`` parameter means the
    provider refused the request; it is reported here rather than raised.
    """

    parameters: dict[str, str] = field(default_factory=dict)
    expiry_datetime: datetime | None = None

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.parameters.get(key, default)

    def __getitem__(self, key: str) -> str:
        return self.parameters[key]

    def __contains__(self, key: object) -> bool:
        return key in self.parameters

    def is_error(self) -> bool:
        return "error" in self.parameters

    def as_dict(self) -> dict[str, Any]:
        """Return the parameters, augmented with ``expiry_datetime`` if set."""
        result: dict[str, Any] = dict(self.parameters)
        if self.expiry_datetime is not None:
            result["expiry_datetime"] = self.expiry_datetime
        return result


class PushedAuthorizationResponse(BaseModel):
    """Pushed Authorization Request response (RFC 9126 Section 2.2)."""

    model_config = ConfigDict(extra="allow")

    request_uri: str
    expires_in: int | None = None
    expiry_datetime: datetime | None = None


@dataclass(frozen=True)
class AuthorizationFlowResult:
    """Outcome of a complete interactive flow.

    Carries the provider's result together with the security material that
    was generated for the request: ``state`` to check the echo, ``nonce`` to
    check the ID token, and ``code_verifier`` for the token exchange.
    """

    result: AuthorizationResult
    state: str
    nonce: str | None = None
    code_verifier: str | None = None

    def is_error(self) -> bool:
        return self.result.is_error()

    def verify_state(self) -> None:
        """Check the echoed state against the one sent.

        Raises:
            StateValidationError: If the state is missing or does not match
        """
        from deskauth.client.primitives.security import validate_state

        validate_state(self.state, self.result.get("state"))

    def verify_nonce(self, id_token: str | None = None) -> None:
        """Check the ``nonce`` claim of an ID token against the one sent.

        Args:
            id_token: Token to check; defaults to the ``id_token`` parameter
                of the result (implicit and hybrid flows)

        Raises:
            NonceValidationError: If the nonce is missing or does not match
            JWTDecodeError: If the token cannot be decoded
        """
        from deskauth.client.primitives.jwt import decode_jwt
        from deskauth.client.primitives.security import validate_nonce

        token = id_token or self.result.get("id_token")
        if not token:
            raise ParameterValidationError("No id_token available to verify")

        claims = decode_jwt(token).claims
        validate_nonce(self.nonce, claims.get("nonce"))
