"""
GeofenceConsoleApi: one authenticated connection to the geofence backend.

Owns the access token and the session actor. The actor (role + organization)
is resolved at login and never re-derived by callers.
"""
from __future__ import annotations

import logging
import time

from custom_components.geofence_console.api import auth, geofences
from custom_components.geofence_console.const import TOKEN_TTL
from custom_components.geofence_console.errors import AuthenticationError
from custom_components.geofence_console.models import Actor, Geofence, Role

_LOGGER = logging.getLogger(__name__)


class GeofenceConsoleApi:
    """Thin stateful wrapper over the api.auth and api.geofences functions."""

    def __init__(self, api_url: str, username: str, password: str, token_ttl: int = TOKEN_TTL) -> None:
        self.api_url = api_url.rstrip("/") + "/"
        self.username = username
        self.password = password
        self.token_ttl = token_ttl
        self._token: str | None = None
        self._last_token_update: float = 0.0
        self._actor: Actor | None = None

    @property
    def actor(self) -> Actor | None:
        return self._actor

    @property
    def headers(self) -> dict:
        if self._token is None:
            raise AuthenticationError("Not logged in")
        return auth.get_standard_headers(self._token)

    async def login(self, forced: bool = False) -> Actor:
        """
        Log in if there is no token yet or it has expired, and return the actor.

        The organization lookup only runs for boundary authors, whose
        organization is fixed for every geofence they create.
        """
        if not forced and self._token is not None and self._actor is not None:
            if not auth.token_expired(self._last_token_update, self.token_ttl):
                _LOGGER.debug("Token refresh skipped (still valid)")
                return self._actor

        _LOGGER.debug("Logging in as %s", self.username)
        response = await auth.login(self.api_url, self.username, self.password)
        self._token = response.access
        self._last_token_update = time.time()

        organization_id = organization_name = None
        if response.role == Role.BOUNDARY_AUTHOR.value:
            organization_id, organization_name = await auth.fetch_user_organization(
                self.api_url, response.user_id, self.headers
            )
        self._actor = auth.resolve_actor(response, organization_id, organization_name)
        _LOGGER.debug("Logged in as %s with role %s", self._actor.username, self._actor.role.name)
        return self._actor

    async def get_geofences(self) -> list[Geofence]:
        return await geofences.fetch_geofences(self.api_url, self.headers)

    async def get_geofence(self, geofence_id: int) -> Geofence:
        return await geofences.fetch_geofence(self.api_url, geofence_id, self.headers)

    async def create_geofence(self, payload: dict) -> Geofence | None:
        return await geofences.create_geofence(self.api_url, payload, self.headers)

    async def update_geofence(self, geofence_id: int, payload: dict) -> Geofence | None:
        return await geofences.update_geofence(self.api_url, geofence_id, payload, self.headers)

    async def delete_geofence(self, geofence_id: int) -> None:
        await geofences.delete_geofence(self.api_url, geofence_id, self.headers)
