"""Security utilities for OAuth2/OIDC flows.

Provides cryptographically secure state and nonce generation and the
matching validation helpers.
"""

from __future__ import annotations

import secrets

from deskauth.client.models.errors import NonceValidationError, StateValidationError
from deskauth.client.primitives.pkce import generate_random_string, random_length

STATE_MIN_LENGTH = 16
STATE_MAX_LENGTH = 21
NONCE_MIN_LENGTH = 32
NONCE_MAX_LENGTH = 64


def generate_state() -> str:
    """Generate a cryptographically secure state parameter (16-21 characters).

    The state parameter provides CSRF protection by tying the callback to
    the original authorization request.
    """
    return generate_random_string(random_length(STATE_MIN_LENGTH, STATE_MAX_LENGTH))


def generate_nonce() -> str:
    """Generate a cryptographically secure OIDC nonce (32-64 characters)."""
    return generate_random_string(random_length(NONCE_MIN_LENGTH, NONCE_MAX_LENGTH))


def validate_state(expected: str, actual: str | None) -> None:
    """Validate state parameter matches expected value.

    Raises:
        StateValidationError: If the state is missing or doesn't match
    """
    if actual is None:
        raise StateValidationError(
            "Authorization server callback missing required state parameter"
        )
    if not secrets.compare_digest(expected, actual):
        raise StateValidationError("State parameter mismatch - possible CSRF attack")


def validate_nonce(expected: str | None, actual: str | None) -> None:
    """Validate an ID token nonce claim matches the requested nonce.

    Raises:
        NonceValidationError: If no nonce was requested, the claim is
            missing, or the values differ
    """
    if expected is None:
        raise NonceValidationError("No nonce was sent with the request")
    if actual is None:
        raise NonceValidationError("ID token is missing the nonce claim")
    if not secrets.compare_digest(expected, actual):
        raise NonceValidationError("Nonce mismatch - possible token replay")
