"""HTTP helpers shared by the endpoint services."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

import httpx


def append_query(endpoint: str, parameters: dict[str, str]) -> str:
    """Append percent-encoded parameters to an endpoint URL.

    Query parameters already present on the endpoint are kept.
    """
    if not parameters:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{urlencode(parameters, quote_via=quote)}"


def parse_error_body(response: httpx.Response) -> dict[str, Any] | str:
    """Parse an error body as JSON, falling back to the raw text."""
    try:
        error_data = response.json()
    except ValueError:
        return response.text
    return error_data if isinstance(error_data, dict) else response.text


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300
