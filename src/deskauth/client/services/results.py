"""Terminal redirect parsing.

Turns the navigation that completed a flow into an AuthorizationResult.
"""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import parse_qsl, urlparse

from deskauth.client.models.errors import ParameterValidationError
from deskauth.client.models.flow import (
    AuthorizationResult,
    ResponseMode,
    expiry_from_expires_in,
)
from deskauth.client.services.classifier import NavigationEvent

logger = logging.getLogger(__name__)


def _select_component(
    capture: NavigationEvent, response_mode: ResponseMode | None
) -> str:
    parsed = urlparse(capture.uri)

    if response_mode is ResponseMode.FORM_POST:
        return capture.body or ""
    if response_mode is ResponseMode.FRAGMENT:
        return parsed.fragment
    if response_mode is ResponseMode.QUERY:
        return parsed.query

    # No explicit mode: query string, unless it is empty and the provider
    # used the fragment (implicit flow default).
    return parsed.query or parsed.fragment


def parse_terminal_result(
    capture: NavigationEvent | str,
    response_mode: ResponseMode | str | None = None,
    now: datetime | None = None,
) -> AuthorizationResult:
    """Parse the terminal navigation of a flow.

    Args:
        capture: The completing navigation, or a bare URI
        response_mode: Where the parameters are; query when omitted
        now: Reference time for ``expiry_datetime``, defaults to the
            current UTC time

    Returns:
        AuthorizationResult with the flat parameter map. Error redirects
        are returned as data with ``error`` / ``error_description``.
    """
    if isinstance(capture, str):
        capture = NavigationEvent(uri=capture)
    if response_mode is not None:
        try:
            response_mode = ResponseMode(response_mode)
        except ValueError as e:
            raise ParameterValidationError(
                f"Invalid response_mode {response_mode!r}"
            ) from e

    component = _select_component(capture, response_mode)
    parameters = dict(parse_qsl(component, keep_blank_values=True))
    expiry_datetime = expiry_from_expires_in(parameters.get("expires_in"), now)

    if "error" in parameters:
        logger.warning(
            f"Authorization response contained error: {parameters['error']} - "
            f"{parameters.get('error_description', '')}"
        )
    else:
        logger.info(
            f"Authorization response received with parameters: "
            f"{', '.join(sorted(parameters))}"
        )

    return AuthorizationResult(parameters=parameters, expiry_datetime=expiry_datetime)
