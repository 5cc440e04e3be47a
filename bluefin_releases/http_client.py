"""HTTP client utilities with consistent user agent."""

from typing import Any, Dict, Optional

import requests

from bluefin_releases import __version__
from bluefin_releases.exceptions import APIError, RateLimitError

USER_AGENT = f"bluefin-releases/{__version__} (+https://github.com/castrojo/bluefin-releases)"

# Every network call carries its own timeout; there is no pipeline-wide deadline
DEFAULT_TIMEOUT = 10  # seconds


def get_default_headers(token: Optional[str] = None, accept: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        token: Optional bearer token to include
        accept: Optional Accept header value (e.g., "application/vnd.github+json")

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if accept:
        headers["Accept"] = accept
    return headers


def create_session() -> requests.Session:
    """Create a requests session carrying the default headers."""
    session = requests.Session()
    session.headers.update(get_default_headers())
    return session


def _raise_for_status(response: requests.Response, context: str) -> None:
    """Translate a non-2xx response into the matching exception."""
    if response.status_code in (403, 429):
        raise RateLimitError(f"Failed to {context}: rate limited or forbidden [{response.status_code}]")
    if not 200 <= response.status_code < 300:
        raise APIError(f"Failed to {context}. [{response.status_code}]")


def _get(
    session: requests.Session,
    url: str,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[requests.Response]:
    try:
        response = session.get(url, headers=headers, params=params, timeout=timeout)
    except requests.exceptions.Timeout:
        raise APIError(f"Failed to {context}: request timed out")
    except requests.exceptions.RequestException as e:
        raise APIError(f"Failed to {context}: {e}")

    if response.status_code == 404:
        return None
    _raise_for_status(response, context)
    return response


def get_json(
    session: requests.Session,
    url: str,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[Any]:
    """
    GET a JSON document.

    Args:
        session: requests.Session with configured headers
        url: Absolute URL to fetch
        context: Short description for error messages (e.g., "list GitHub releases")
        headers: Extra per-request headers (auth)
        params: Query parameters
        timeout: Per-request timeout in seconds

    Returns:
        Parsed JSON, or None when the server answered 404

    Raises:
        RateLimitError: On 403/429
        APIError: On transport failures, other non-2xx statuses or undecodable bodies
    """
    response = _get(session, url, context, headers=headers, params=params, timeout=timeout)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError as e:
        # Covers json.JSONDecodeError and requests' own decode error
        raise APIError(f"Failed to {context}: invalid JSON response ({e})")


def get_text(
    session: requests.Session,
    url: str,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[str]:
    """GET a text document; same status semantics as :func:`get_json`."""
    response = _get(session, url, context, headers=headers, timeout=timeout)
    if response is None:
        return None
    return response.text
