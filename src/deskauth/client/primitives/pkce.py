"""PKCE (Proof Key for Code Exchange) primitives.

Implements RFC 7636 verifier generation and challenge derivation, plus the
random string generator shared with state and nonce generation.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from deskauth.client.models.errors import (
    ParameterValidationError,
    UnsupportedChallengeMethodError,
)
from deskauth.client.models.security import PKCEParameters

# RFC 7636 Section 4.1 unreserved characters
UNRESERVED_ALPHABET = string.ascii_letters + string.digits + "-._~"

CODE_VERIFIER_MIN_LENGTH = 43
CODE_VERIFIER_MAX_LENGTH = 128


def generate_random_string(length: int) -> str:
    """Generate a cryptographically secure URL-safe random string.

    Args:
        length: Exact number of characters to return

    Returns:
        Random string drawn from the RFC 7636 unreserved alphabet

    Raises:
        ParameterValidationError: If length is not positive
    """
    if length < 1:
        raise ParameterValidationError(
            f"Random string length must be positive, got {length}"
        )
    return "".join(secrets.choice(UNRESERVED_ALPHABET) for _ in range(length))


def random_length(minimum: int, maximum: int) -> int:
    """Pick a length uniformly from the closed range [minimum, maximum]."""
    return minimum + secrets.randbelow(maximum - minimum + 1)


def derive_challenge(code_verifier: str, method: str = "S256") -> str:
    """Derive a code challenge from a code verifier.

    RFC 7636 Section 4.2: for S256 the challenge is
    BASE64URL-ENCODE(SHA256(ASCII(code_verifier))); for plain it is the
    verifier itself.

    Raises:
        UnsupportedChallengeMethodError: For any other method
    """
    if method == "S256":
        digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
    if method == "plain":
        return code_verifier
    raise UnsupportedChallengeMethodError(method)


class PKCEManager:
    """Generates PKCE material for authorization code flows.

    Every call draws fresh randomness; nothing is shared between flows.
    """

    def generate_parameters(self, method: str = "S256") -> PKCEParameters:
        """Generate a fresh verifier and its derived challenge.

        The verifier length is chosen uniformly within the RFC 7636 bounds.

        Raises:
            UnsupportedChallengeMethodError: If method is not S256 or plain
        """
        code_verifier = generate_random_string(
            random_length(CODE_VERIFIER_MIN_LENGTH, CODE_VERIFIER_MAX_LENGTH)
        )
        code_challenge = derive_challenge(code_verifier, method)

        return PKCEParameters(
            code_challenge=code_challenge,
            code_challenge_method=method,
            code_verifier=code_verifier,
        )

    def verify(self, code_verifier: str, code_challenge: str, method: str) -> bool:
        """Check that a verifier matches a previously issued challenge."""
        return secrets.compare_digest(
            derive_challenge(code_verifier, method), code_challenge
        )
