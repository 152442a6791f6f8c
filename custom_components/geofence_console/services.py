"""
Service actions for boundary capture and geofence lifecycle.

Every action targets one config entry: the one named by config_entry_id, or
the only loaded entry when there is exactly one. Domain errors are mapped to
HA exceptions here so the caller sees a readable message:
- ValidationError   -> ServiceValidationError (bad input, nothing was sent)
- everything else   -> HomeAssistantError
"""
from __future__ import annotations

import contextlib
import logging
from typing import Iterator

import homeassistant.helpers.config_validation as cv
import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse, callback
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError

from .const import (
    ATTR_CONFIG_ENTRY_ID,
    ATTR_GEOFENCE_ID,
    ATTR_ORGANIZATION_ID,
    DOMAIN,
    READ_ONLY_NOTICE,
    SERVICE_ADD_BOUNDARY_POINT,
    SERVICE_CANCEL_BOUNDARY,
    SERVICE_CANCEL_DELETION,
    SERVICE_CLEAR_BOUNDARY_POINTS,
    SERVICE_CONFIRM_BOUNDARY,
    SERVICE_CONFIRM_DELETION,
    SERVICE_CREATE_GEOFENCE,
    SERVICE_REMOVE_LAST_BOUNDARY_POINT,
    SERVICE_REQUEST_DELETION,
    SERVICE_SELECT_GEOFENCE,
    SERVICE_UPDATE_GEOFENCE,
)
from .errors import GeofenceConsoleError, ValidationError
from .models import GeofencePatch
from .point_collector import ClearPoints, MapPick, RemoveLastPoint

_LOGGER = logging.getLogger(__name__)

ATTR_LATITUDE = "latitude"
ATTR_LONGITUDE = "longitude"
ATTR_NAME = "name"
ATTR_DESCRIPTION = "description"
ATTR_ACTIVE = "active"

_ENTRY = {vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string}

ENTRY_SCHEMA = vol.Schema(_ENTRY)

POINT_SCHEMA = vol.Schema(
    {
        **_ENTRY,
        vol.Required(ATTR_LATITUDE): cv.latitude,
        vol.Required(ATTR_LONGITUDE): cv.longitude,
    }
)

CREATE_SCHEMA = vol.Schema(
    {
        **_ENTRY,
        vol.Required(ATTR_NAME): cv.string,
        vol.Optional(ATTR_DESCRIPTION): cv.string,
        vol.Optional(ATTR_ORGANIZATION_ID): cv.positive_int,
    }
)

# No geometry here: boundaries are fixed once created
UPDATE_SCHEMA = vol.Schema(
    {
        **_ENTRY,
        vol.Required(ATTR_GEOFENCE_ID): cv.positive_int,
        vol.Optional(ATTR_NAME): cv.string,
        vol.Optional(ATTR_DESCRIPTION): cv.string,
        vol.Optional(ATTR_ACTIVE): cv.boolean,
    }
)

GEOFENCE_SCHEMA = vol.Schema(
    {
        **_ENTRY,
        vol.Required(ATTR_GEOFENCE_ID): cv.positive_int,
    }
)

SELECT_SCHEMA = vol.Schema(
    {
        **_ENTRY,
        vol.Optional(ATTR_GEOFENCE_ID): vol.Any(None, cv.positive_int),
    }
)


@contextlib.contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise domain errors as the matching HA exception."""
    try:
        yield
    except ValidationError as exc:
        raise ServiceValidationError(str(exc)) from exc
    except GeofenceConsoleError as exc:
        raise HomeAssistantError(str(exc)) from exc


def get_coordinator(hass: HomeAssistant, call: ServiceCall):
    """Resolve the coordinator a service call is aimed at."""
    coordinators = hass.data.get(DOMAIN, {})
    entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)
    if entry_id:
        coordinator = coordinators.get(entry_id)
        if coordinator is None:
            raise ServiceValidationError(f"Geofence console entry {entry_id} is not loaded")
        return coordinator
    if len(coordinators) != 1:
        raise ServiceValidationError(
            f"{ATTR_CONFIG_ENTRY_ID} is required when {len(coordinators)} geofence consoles are loaded"
        )
    return next(iter(coordinators.values()))


def _author_coordinator(hass: HomeAssistant, call: ServiceCall):
    """Boundary capture is only offered to boundary authors."""
    coordinator = get_coordinator(hass, call)
    if not coordinator.can_mutate:
        raise HomeAssistantError(READ_ONLY_NOTICE)
    return coordinator


@callback
def async_register_services(hass: HomeAssistant) -> None:
    """Register all geofence console services (once per HA instance)."""
    if hass.services.has_service(DOMAIN, SERVICE_CREATE_GEOFENCE):
        return

    # -- boundary capture --------------------------------------------------

    async def add_boundary_point(call: ServiceCall) -> None:
        coordinator = _author_coordinator(hass, call)
        coordinator.capture.dispatch(MapPick(call.data[ATTR_LATITUDE], call.data[ATTR_LONGITUDE]))
        coordinator.async_update_listeners()

    async def remove_last_boundary_point(call: ServiceCall) -> None:
        coordinator = _author_coordinator(hass, call)
        coordinator.capture.dispatch(RemoveLastPoint())
        coordinator.async_update_listeners()

    async def clear_boundary_points(call: ServiceCall) -> None:
        coordinator = _author_coordinator(hass, call)
        coordinator.capture.dispatch(ClearPoints())
        coordinator.async_update_listeners()

    async def confirm_boundary(call: ServiceCall) -> None:
        coordinator = _author_coordinator(hass, call)
        with translate_errors():
            coordinator.capture.confirm()
        coordinator.async_update_listeners()

    async def cancel_boundary(call: ServiceCall) -> None:
        coordinator = _author_coordinator(hass, call)
        coordinator.capture.cancel()
        coordinator.async_update_listeners()

    # -- lifecycle ---------------------------------------------------------

    async def create_geofence(call: ServiceCall) -> ServiceResponse:
        coordinator = get_coordinator(hass, call)
        with translate_errors():
            created = await coordinator.controller.create_from_capture(
                coordinator.capture,
                name=call.data[ATTR_NAME],
                description=call.data.get(ATTR_DESCRIPTION),
                organization_id=call.data.get(ATTR_ORGANIZATION_ID),
            )
        coordinator.async_update_listeners()
        if not call.return_response:
            return None
        return {"geofence_id": created.id if created else None}

    async def update_geofence(call: ServiceCall) -> None:
        coordinator = get_coordinator(hass, call)
        patch = GeofencePatch(
            name=call.data.get(ATTR_NAME),
            description=call.data.get(ATTR_DESCRIPTION),
            active=call.data.get(ATTR_ACTIVE),
        )
        with translate_errors():
            await coordinator.controller.update(call.data[ATTR_GEOFENCE_ID], patch)

    async def request_deletion(call: ServiceCall) -> None:
        coordinator = get_coordinator(hass, call)
        with translate_errors():
            coordinator.controller.request_delete(call.data[ATTR_GEOFENCE_ID])
        coordinator.async_update_listeners()

    async def confirm_deletion(call: ServiceCall) -> None:
        coordinator = get_coordinator(hass, call)
        with translate_errors():
            await coordinator.controller.confirm_delete(call.data[ATTR_GEOFENCE_ID])

    async def cancel_deletion(call: ServiceCall) -> None:
        coordinator = get_coordinator(hass, call)
        coordinator.controller.cancel_delete()
        coordinator.async_update_listeners()

    async def select_geofence(call: ServiceCall) -> None:
        coordinator = get_coordinator(hass, call)
        geofence_id = call.data.get(ATTR_GEOFENCE_ID)
        if geofence_id is None:
            coordinator.controller.select(None)
        else:
            coordinator.controller.toggle_selection(geofence_id)
        coordinator.async_update_listeners()

    register = hass.services.async_register
    register(DOMAIN, SERVICE_ADD_BOUNDARY_POINT, add_boundary_point, schema=POINT_SCHEMA)
    register(DOMAIN, SERVICE_REMOVE_LAST_BOUNDARY_POINT, remove_last_boundary_point, schema=ENTRY_SCHEMA)
    register(DOMAIN, SERVICE_CLEAR_BOUNDARY_POINTS, clear_boundary_points, schema=ENTRY_SCHEMA)
    register(DOMAIN, SERVICE_CONFIRM_BOUNDARY, confirm_boundary, schema=ENTRY_SCHEMA)
    register(DOMAIN, SERVICE_CANCEL_BOUNDARY, cancel_boundary, schema=ENTRY_SCHEMA)
    register(
        DOMAIN, SERVICE_CREATE_GEOFENCE, create_geofence,
        schema=CREATE_SCHEMA, supports_response=SupportsResponse.OPTIONAL,
    )
    register(DOMAIN, SERVICE_UPDATE_GEOFENCE, update_geofence, schema=UPDATE_SCHEMA)
    register(DOMAIN, SERVICE_REQUEST_DELETION, request_deletion, schema=GEOFENCE_SCHEMA)
    register(DOMAIN, SERVICE_CONFIRM_DELETION, confirm_deletion, schema=GEOFENCE_SCHEMA)
    register(DOMAIN, SERVICE_CANCEL_DELETION, cancel_deletion, schema=ENTRY_SCHEMA)
    register(DOMAIN, SERVICE_SELECT_GEOFENCE, select_geofence, schema=SELECT_SCHEMA)
    _LOGGER.debug("Registered %s services", DOMAIN)
