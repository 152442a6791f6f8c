"""
Low-level authentication logic for the geofence backend.

Responsible for:
- Obtaining access/refresh tokens via the login endpoint
- Looking up the logged-in user's organization
- Resolving the session actor (role + organization) once per login
- Building the standard authorization headers used by all API calls
"""
import asyncio
import logging
import time

import aiohttp

from custom_components.geofence_console.const import LOGIN_PATH, USER_DETAIL_PATH, WRITE_ATTEMPTS
from custom_components.geofence_console.errors import (
    AuthenticationError,
    AuthorizationError,
    PersistenceError,
)
from custom_components.geofence_console.models import Actor, Role
from custom_components.geofence_console.requests import make_request, ApiResponseError

_LOGGER = logging.getLogger(__name__)


class LoginResponse:
    """Parsed response from the login endpoint."""

    access: str | None = None
    refresh: str | None = None
    user_id: int | None = None
    username: str | None = None
    role: str | None = None

    def __init__(self, json: dict) -> None:
        self.access = json["access"]
        self.refresh = json.get("refresh")
        user = json["user"]
        self.user_id = user["id"]
        self.username = user.get("username", "")
        self.role = user.get("role")

    def __str__(self) -> str:
        return f"user_id: {self.user_id}, username: {self.username}, role: {self.role}"


async def login(api_url: str, username: str, password: str) -> LoginResponse:
    """
    Log in and return the parsed token/user response.

    Raises AuthenticationError when the backend refuses the credentials and
    PersistenceError when it cannot be reached.

    Corresponding CURL command:
    curl -X 'POST' 'https://<host>/api/auth/login/' \\
      -H 'Content-Type: application/json' \\
      -d '{"username": "USERNAME", "password": "PASSWORD"}'
    """
    url = api_url + LOGIN_PATH
    headers = {
        "accept": "application/json",
        "Content-Type": "application/json",
    }
    payload = {"username": username, "password": password}
    try:
        json_response = await make_request("POST", url, headers, payload=payload, max_attempts=WRITE_ATTEMPTS)
    except ApiResponseError as e:
        if e.status in (400, 401, 403):
            _LOGGER.error("Login rejected for %s: %s", username, e)
            raise AuthenticationError("Invalid username or password") from e
        raise PersistenceError(f"Login failed with HTTP {e.status}", e.status) from e
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.error("Timeout while logging in")
        raise PersistenceError("Timeout while logging in") from e
    except (aiohttp.ClientError, ValueError) as e:
        raise PersistenceError(f"Login failed: {e}") from e

    try:
        return LoginResponse(json_response)
    except (KeyError, TypeError) as e:
        _LOGGER.error("Unexpected login response: %s", json_response)
        raise AuthenticationError("Unexpected login response") from e


async def fetch_user_organization(
    api_url: str, user_id: int, headers: dict
) -> tuple[int | None, str | None]:
    """
    Return (organization_id, organization_name) for the given user.

    Returns (None, None) when the user has no organization or the lookup fails.

    Corresponding CURL command:
    curl -X 'GET' 'https://<host>/api/auth/admin/users/<USER_ID>/'
    """
    url = api_url + USER_DETAIL_PATH.format(user_id=user_id)
    try:
        raw_json = await make_request("GET", url, headers)
    except ApiResponseError as e:
        _LOGGER.warning("Error while getting user details: %s", e)
        return None, None
    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while getting user details")
        return None, None
    except (aiohttp.ClientError, ValueError) as e:
        _LOGGER.warning("Failed to get user details: %s", e)
        return None, None

    organization = (raw_json or {}).get("organization")
    if isinstance(organization, dict):
        return organization.get("id"), organization.get("name")
    if isinstance(organization, int):
        return organization, None
    return None, None


def resolve_actor(
    login_response: LoginResponse,
    organization_id: int | None = None,
    organization_name: str | None = None,
) -> Actor:
    """Build the session actor. Raises AuthorizationError for roles outside this console."""
    role = Role.from_api(login_response.role)
    if role is None:
        raise AuthorizationError(
            f"Role {login_response.role!r} cannot use the geofence console"
        )
    return Actor(
        user_id=login_response.user_id,
        username=login_response.username or "",
        role=role,
        organization_id=organization_id,
        organization_name=organization_name,
    )


def token_expired(last_token_update: float, token_ttl: int) -> bool:
    return (time.time() - last_token_update) > token_ttl


def get_standard_headers(token: str) -> dict:
    """
    Build the standard HTTP headers used by all authenticated API requests.

    :param token: Access token obtained from :func:`login`.
    :return: Dictionary of HTTP headers.
    """
    return {
        "accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }
