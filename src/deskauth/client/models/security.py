"""Security-related models for OAuth2/OIDC authorization requests.

Contains PKCE material, the per-request CSRF/replay context, and the split
between security-critical and opaque caller parameters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields

from deskauth.client.models.errors import ParameterValidationError

CODE_CHALLENGE_METHODS = ("S256", "plain")


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) material for one authorization flow.

    ``code_verifier`` is None when the caller supplied only a challenge and
    keeps the verifier to itself (delegated PKCE).
    """

    code_challenge: str = field()
    code_challenge_method: str = field(default="S256")
    code_verifier: str | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.code_challenge:
            raise ParameterValidationError("code_challenge must not be empty")


@dataclass(frozen=True)
class SecurityContext:
    """CSRF state and OIDC nonce bound to a single authorization request."""

    state: str
    nonce: str | None = None


@dataclass(frozen=True)
class ReservedSecurityParameters:
    """Security-critical values a caller may pre-seed instead of generating.

    Anything else found in caller-supplied custom parameters is opaque and
    passed through untouched.
    """

    state: str | None = None
    nonce: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    code_verifier: str | None = None

    @classmethod
    def reserved_keys(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def split(
        cls, custom_parameters: Mapping[str, str] | None
    ) -> tuple[ReservedSecurityParameters, dict[str, str]]:
        """Separate reserved keys from opaque passthrough parameters.

        Returns:
            Tuple of (reserved, opaque) where opaque never contains a
            reserved key.
        """
        custom_parameters = custom_parameters or {}
        reserved_keys = cls.reserved_keys()

        reserved = cls(
            **{
                key: str(value)
                for key, value in custom_parameters.items()
                if key in reserved_keys
            }
        )
        opaque = {
            key: str(value)
            for key, value in custom_parameters.items()
            if key not in reserved_keys
        }
        return reserved, opaque
