"""
HTTP helpers for metadata hooks.

Package filters, search handlers and cache handlers of the builtin
repositories query JSON APIs. Failures are raised as
``MetadataUnavailableError`` so callers can tell them apart from listing
failures.
"""

import logging
from typing import Any

import requests

from .errors import MetadataUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    context: str = "metadata",
    missing_ok: bool = False,
) -> Any:
    """
    GET ``url`` and decode the JSON response.

    Args:
        url: URL to request
        params: Query parameters
        timeout: Seconds before the request is abandoned
        context: Label used in log messages
        missing_ok: Return None instead of raising on HTTP 404

    Returns:
        Decoded JSON document

    Raises:
        MetadataUnavailableError: On connection errors, timeouts, error
            statuses and undecodable bodies
    """
    logger.debug(f"{context} request: GET {url} {params or ''}")
    try:
        res = requests.get(url, params=params, timeout=timeout)
    except requests.Timeout as e:
        raise MetadataUnavailableError(url, f"{context} request timed out after {timeout} seconds") from e
    except requests.RequestException as e:
        raise MetadataUnavailableError(url, f"{context} connection error: {e}") from e

    if res.status_code == 404 and missing_ok:
        logger.debug(f"{context} not found: {url}")
        return None
    if res.status_code >= 400:
        raise MetadataUnavailableError(url, f"{context} request failed with HTTP {res.status_code}")

    try:
        return res.json()
    except ValueError as e:
        raise MetadataUnavailableError(url, f"{context} response is not valid JSON: {e}") from e


def flatten_request(action: str, request: dict[str, Any]) -> dict[str, Any]:
    """
    Encode a nested API request as PHP-style query parameters.

    ``{"fields": {"sections": 0}}`` becomes ``request[fields][sections]=0``.
    """
    params: dict[str, Any] = {"action": action}

    def walk(prefix: str, value: Any) -> None:
        if isinstance(value, dict):
            for key, item in value.items():
                walk(f"{prefix}[{key}]", item)
        else:
            params[prefix] = int(value) if isinstance(value, bool) else value

    walk("request", request)
    return params
