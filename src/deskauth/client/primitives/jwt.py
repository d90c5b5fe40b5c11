"""JSON Web Token decoding for ID and access tokens.

Decodes tokens returned by a flow for inspection and, when a JWKS URI is
given, verifies their signature with PyJWT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import jwt

from deskauth.client.models.errors import JWTDecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedJWT:
    header: dict[str, Any] = field(default_factory=dict)
    claims: dict[str, Any] = field(default_factory=dict)
    verified: bool = False


def decode_jwt(
    token: str,
    *,
    jwks_uri: str | None = None,
    audience: str | None = None,
    algorithms: list[str] | None = None,
) -> DecodedJWT:
    """Decode a JWT, verifying the signature when a JWKS URI is given.

    Without ``jwks_uri`` the token is decoded without any verification;
    use that only to inspect tokens received directly from the provider.

    Args:
        token: Compact serialized JWT
        jwks_uri: Provider JWKS endpoint used to look up the signing key
        audience: Expected ``aud`` claim, checked only when verifying
        algorithms: Accepted signing algorithms; defaults to the ``alg``
            of the token header

    Raises:
        JWTDecodeError: If the token is malformed or verification fails
    """
    try:
        header = jwt.get_unverified_header(token)

        if jwks_uri is None:
            claims = jwt.decode(token, options={"verify_signature": False})
            return DecodedJWT(header=header, claims=claims, verified=False)

        signing_key = jwt.PyJWKClient(jwks_uri).get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=algorithms or [header.get("alg", "RS256")],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except jwt.PyJWTError as e:
        raise JWTDecodeError(f"Failed to decode JWT: {e}") from e

    logger.debug(f"Verified JWT signature with key {header.get('kid')}")
    return DecodedJWT(header=header, claims=claims, verified=True)
