"""
Low-level geofence persistence calls.

Responsible for:
- Fetching the geofence collection and single geofences
- Creating, patching and deleting geofences
- Turning every transport or API failure into a PersistenceError with the
  most useful message the backend gave us

Reads retry on timeout; writes are sent exactly once.
"""
import asyncio
import logging

import aiohttp

from custom_components.geofence_console.const import (
    GEOFENCES_PATH,
    GEOFENCE_DETAIL_PATH,
    WRITE_ATTEMPTS,
)
from custom_components.geofence_console.errors import PersistenceError
from custom_components.geofence_console.models import Geofence
from custom_components.geofence_console.requests import make_request, ApiResponseError

_LOGGER = logging.getLogger(__name__)


def describe_api_error(error_json, status: int | None) -> str:
    """
    Pick the best human-readable message from an error body.

    Prefers "detail"/"error", then field errors flattened to "field: message".
    """
    if isinstance(error_json, dict):
        for key in ("detail", "error", "message"):
            if error_json.get(key):
                return str(error_json[key])
        parts = []
        for field, messages in error_json.items():
            if isinstance(messages, list):
                messages = " ".join(str(m) for m in messages)
            parts.append(f"{field}: {messages}")
        if parts:
            return "; ".join(parts)
    if isinstance(error_json, list) and error_json:
        return "; ".join(str(m) for m in error_json)
    if status is not None:
        return f"Request failed with HTTP {status}"
    return "Request failed"


async def _call(action: str, method: str, url: str, headers: dict, **kwargs):
    try:
        return await make_request(method, url, headers, **kwargs)
    except ApiResponseError as e:
        message = describe_api_error(e.error_json, e.status)
        _LOGGER.warning("Error while trying to %s: %s", action, message)
        raise PersistenceError(message, e.status) from e
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.warning("Timeout while trying to %s", action)
        raise PersistenceError(f"Timeout while trying to {action}") from e
    except (aiohttp.ClientError, ValueError) as e:
        _LOGGER.warning("Failed to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}: {e}") from e


def _parse_one(raw_json) -> Geofence | None:
    if not raw_json:
        return None
    try:
        return Geofence.from_json(raw_json)
    except (KeyError, TypeError, ValueError) as e:
        _LOGGER.warning("Unreadable geofence in response %s: %s", raw_json, e)
        return None


def _parse_geofences(raw_json) -> list[Geofence]:
    # The list endpoint may answer with a paginated object
    if isinstance(raw_json, dict):
        raw_json = raw_json.get("results", [])
    if not isinstance(raw_json, list):
        _LOGGER.error("Unexpected response format in geofence list: %s", raw_json)
        raise PersistenceError("Unexpected response format in geofence list")

    geofences = []
    for item in raw_json:
        try:
            geofences.append(Geofence.from_json(item))
        except (KeyError, TypeError, ValueError) as e:
            _LOGGER.warning("Skipping malformed geofence %s: %s", item, e)
    return geofences


async def fetch_geofences(api_url: str, headers: dict) -> list[Geofence]:
    """
    Fetch the full geofence collection visible to the current user.

    Corresponding CURL command:
    curl -X 'GET' 'https://<host>/api/auth/admin/geofences/'
    """
    raw_json = await _call("load geofences", "GET", api_url + GEOFENCES_PATH, headers)
    return _parse_geofences(raw_json)


async def fetch_geofence(api_url: str, geofence_id: int, headers: dict) -> Geofence:
    """
    Fetch a single geofence.

    Corresponding CURL command:
    curl -X 'GET' 'https://<host>/api/auth/admin/geofences/<ID>/'
    """
    url = api_url + GEOFENCE_DETAIL_PATH.format(geofence_id=geofence_id)
    raw_json = await _call("load geofence", "GET", url, headers)
    geofence = _parse_one(raw_json)
    if geofence is None:
        raise PersistenceError(f"Geofence {geofence_id} could not be read")
    return geofence


async def create_geofence(api_url: str, payload: dict, headers: dict) -> Geofence | None:
    """
    Create a geofence. Returns the created geofence as echoed by the backend.

    Corresponding CURL command:
    curl -X 'POST' 'https://<host>/api/auth/admin/geofences/' \\
         -d '{"name": "...", "polygon_json": {...}, "organization": 1, "active": true}'
    """
    raw_json = await _call(
        "create geofence", "POST", api_url + GEOFENCES_PATH, headers,
        payload=payload, max_attempts=WRITE_ATTEMPTS,
    )
    _LOGGER.debug("Geofence created: %s", raw_json)
    return _parse_one(raw_json)


async def update_geofence(api_url: str, geofence_id: int, payload: dict, headers: dict) -> Geofence | None:
    """
    Patch name/description/active of a geofence.

    Corresponding CURL command:
    curl -X 'PATCH' 'https://<host>/api/auth/admin/geofences/<ID>/' -d '{"active": false}'
    """
    url = api_url + GEOFENCE_DETAIL_PATH.format(geofence_id=geofence_id)
    raw_json = await _call(
        "update geofence", "PATCH", url, headers,
        payload=payload, max_attempts=WRITE_ATTEMPTS,
    )
    return _parse_one(raw_json)


async def delete_geofence(api_url: str, geofence_id: int, headers: dict) -> None:
    """
    Delete a geofence. Irreversible.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://<host>/api/auth/admin/geofences/<ID>/'
    """
    url = api_url + GEOFENCE_DETAIL_PATH.format(geofence_id=geofence_id)
    await _call("delete geofence", "DELETE", url, headers, max_attempts=WRITE_ATTEMPTS)
