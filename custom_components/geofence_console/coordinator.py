"""
DataUpdateCoordinator for the Geofence Console integration.

Responsibilities:
- Own the single GeofenceConsoleApi instance for the lifetime of a config entry.
- Refresh the geofence collection every GEOFENCES_INTERVAL seconds and
  project it for display (palette colors + active/inactive counts).
- Own the boundary CaptureSession and the GeofenceLifecycleController; the
  controller refreshes the collection through async_refresh() after every
  successful mutation.
- Surface controller notifications as persistent notifications.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.components import persistent_notification
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api.client import GeofenceConsoleApi
from .const import (
    CONF_API_URL,
    CONF_ENTRY_NAME,
    CONF_GUID,
    CONF_PASSWORD,
    CONF_USERNAME,
    DEFAULT_API_URL,
    DOMAIN,
    GEOFENCES_INTERVAL,
    VERSION,
)
from .coordinator_data import CoordinatorData
from .errors import AuthenticationError, AuthorizationError, PersistenceError
from .lifecycle import GeofenceLifecycleController
from .point_collector import CaptureSession
from .polygon_builder import polygon_vertices
from .projector import group_by_active, project

__all__ = ["CoordinatorData", "GeofenceConsoleCoordinator"]

_LOGGER = logging.getLogger(__name__)


class GeofenceConsoleCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the Geofence Console integration.

    Polls the full geofence list and hands entities an immutable snapshot.
    """

    def __init__(self, hass: HomeAssistant, entry_data: dict, config_entry=None) -> None:
        """Initialize the coordinator from config-entry data."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=GEOFENCES_INTERVAL),
        )

        self.api = GeofenceConsoleApi(
            api_url=entry_data.get(CONF_API_URL) or DEFAULT_API_URL,
            username=entry_data[CONF_USERNAME],
            password=entry_data[CONF_PASSWORD],
        )
        self._entry_data = entry_data
        self.capture = CaptureSession()

        # Created after the first successful login, once the actor is known
        self._controller: GeofenceLifecycleController | None = None

        # Snapshot starts empty; entities must handle a missing geofence gracefully
        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """Log in (reusing a valid token) and fetch the full geofence list."""
        try:
            actor = await self.api.login()
        except AuthenticationError as exc:
            raise UpdateFailed(f"Geofence console authentication failed: {exc}") from exc
        except (AuthorizationError, PersistenceError) as exc:
            raise UpdateFailed(f"Geofence console connection error: {exc}") from exc

        if self._controller is None:
            self._controller = GeofenceLifecycleController(
                self.api, actor, self.async_refresh, self._notify
            )

        try:
            geofences = await self.api.get_geofences()
        except PersistenceError as exc:
            raise UpdateFailed(f"Failed to load geofences: {exc}") from exc

        display = project(geofences)
        data = CoordinatorData(
            geofences=geofences,
            display=display,
            counts=group_by_active(display),
        )

        # Drop a selection that points at a geofence which no longer exists
        selected = self._controller.selected_id
        if selected is not None and data.get(selected) is None:
            self._controller.select(None)

        _LOGGER.debug(
            "Loaded %s geofences (%s active)", data.counts.total, data.counts.active
        )
        return data

    # ------------------------------------------------------------------
    # Controller access
    # ------------------------------------------------------------------

    @property
    def controller(self) -> GeofenceLifecycleController:
        if self._controller is None:
            raise HomeAssistantError("Geofence console is not logged in yet")
        return self._controller

    @property
    def can_mutate(self) -> bool:
        return self._controller is not None and self._controller.can_mutate

    def _notify(self, message: str, title: str) -> None:
        persistent_notification.async_create(
            self.hass,
            message,
            title=f"{self.entry_name}: {title}",
            notification_id=f"{DOMAIN}_{self._entry_data.get(CONF_GUID)}",
        )

    def geofence_attributes(self, geofence_id: int) -> dict | None:
        """Map attributes shared by the per-geofence switch and binary sensor."""
        item = self.data.get(geofence_id)
        if item is None:
            return None
        geofence = item.geofence
        return {
            "geofence_id": geofence.id,
            "color": item.color,
            "organization": geofence.organization_name or geofence.organization,
            "description": geofence.description,
            "center_point": list(geofence.center_point) if geofence.center_point else None,
            "vertices": polygon_vertices(geofence.polygon),
            "selected": self._controller is not None and self._controller.selected_id == geofence.id,
            "pending_deletion": self._controller is not None and self._controller.pending_delete_id == geofence.id,
            "created_by": geofence.created_by_username,
        }

    # ------------------------------------------------------------------
    # Entity helper: device info dict
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict shared by every entity of this entry."""
        actor = self.api.actor
        return {
            "identifiers": {(DOMAIN, f"{self._entry_data.get(CONF_GUID)}")},
            "name": self.entry_name,
            "manufacturer": "Geofence Console",
            "model": actor.role.name.replace("_", " ").title() if actor else "Unknown",
            "sw_version": VERSION,
        }

    @property
    def entry_name(self) -> str:
        return self._entry_data.get(CONF_ENTRY_NAME) or DOMAIN

    @property
    def guid(self) -> str:
        return self._entry_data.get(CONF_GUID, "")

    @property
    def entry_data(self):
        return self._entry_data
