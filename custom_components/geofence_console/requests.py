"""
Low-level HTTP request library for the geofence backend.
This module handles all HTTP requests with timeout retry logic and proper error handling.
"""
import asyncio
import logging
import aiohttp

from custom_components.geofence_console.const import REQUEST_TIMEOUT, READ_ATTEMPTS

_LOGGER = logging.getLogger(__name__)

SUCCESS_STATUSES = (200, 201, 202, 204)
SUPPORTED_METHODS = ("GET", "POST", "PATCH", "PUT", "DELETE")


class ApiResponseError(Exception):
    """Exception raised when the API returns an error response."""
    def __init__(self, status: int, error_json: dict | list | None):
        self.status = status
        self.error_json = error_json
        super().__init__(f"API Error (HTTP {status}): {error_json}")


async def check_api_availability(base_url: str, timeout: int = 15) -> bool:
    """
    Check if the backend is reachable by sending a HEAD request.

    Any HTTP answer below 500 counts as reachable; the root URL of a REST
    backend commonly answers 404 or 405 to HEAD.

    Args:
        base_url: Backend root URL
        timeout: Timeout in seconds for the HEAD request

    Returns:
        True if the backend answered, False otherwise
    """
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.head(base_url) as response:
                if response.status >= 500:
                    _LOGGER.warning("API URL is not reachable (status %s)", response.status)
                    return False
                return True
    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking API URL")
        return False
    except aiohttp.ClientError as e:
        _LOGGER.error("Error while checking API availability: %s", e)
        return False


async def make_request(
    method: str,
    url: str,
    headers: dict,
    payload: dict = None,
    params: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = READ_ATTEMPTS,
):
    """
    Make an HTTP request with automatic retry on timeout.

    Args:
        method: HTTP method (GET, POST, PATCH, PUT, DELETE)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON payload for POST/PATCH/PUT requests (optional)
        params: URL query parameters (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of attempts; pass 1 to disable retries

    Returns:
        Parsed JSON response, or None for an empty successful response

    Raises:
        asyncio.TimeoutError: If all attempts time out
        ApiResponseError: If the API answered with a JSON error body
        ValueError: If response has unexpected content type
        aiohttp.ClientError: For other HTTP or network errors
    """
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_attempts):
        try:
            # Timeout increases with each attempt
            timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.request(
                    method, url, headers=headers, json=payload, params=params
                ) as response:
                    return await _process_response(response, url)

        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                _LOGGER.debug("Timeout on %s %s, retrying (attempt %s)", method, url, attempt + 1)
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                method, url, max_attempts
            )
            raise

    return None


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON response, or None when the body is empty

    Raises:
        ValueError: If response has unexpected content type
        ApiResponseError: For API errors with a JSON body
    """
    content_type = response.headers.get('Content-Type', '')

    # Handle successful response
    if response.status in SUCCESS_STATUSES:
        if response.status == 204:
            return None
        if 'application/json' in content_type:
            return await response.json()
        text = await response.text()
        if not text.strip():
            return None
        _LOGGER.warning(
            "Unexpected content type in successful response: %s (status %s) from %s",
            content_type, response.status, url
        )
        raise ValueError(f"Expected JSON but got {content_type}: {text[:200]}")

    # Handle error responses
    if 'application/json' in content_type:
        try:
            error_json = await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            _LOGGER.error(
                "Failed to parse error response as JSON from %s: %s (status %s, content-type: %s)",
                url, e, response.status, content_type
            )
            raise ValueError(f"HTTP {response.status} with unreadable JSON body from {url}") from e
        raise ApiResponseError(response.status, error_json)

    # Non-JSON error response (e.g., HTML error page)
    text = await response.text()
    _LOGGER.warning(
        "Received non-JSON error response from %s: status %s, content-type: %s, body preview: %s",
        url, response.status, content_type, text[:200]
    )
    raise ApiResponseError(response.status, None)
