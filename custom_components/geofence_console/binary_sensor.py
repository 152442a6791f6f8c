"""
Platform for read-only geofence binary sensors.
Boundary viewers get one binary sensor per geofence showing whether it is
active, with the read-only notice in place of any edit control.
"""
from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.core import HomeAssistant, callback
from homeassistant import config_entries
from homeassistant.helpers import entity_registry as er
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import READ_ONLY_NOTICE
from .coordinator import GeofenceConsoleCoordinator

_LOGGER = logging.getLogger(__name__)


class GeofenceActiveBinarySensor(CoordinatorEntity[GeofenceConsoleCoordinator], BinarySensorEntity):
    """Whether one geofence is active. Cannot be changed from here."""

    _attr_icon = "mdi:vector-polygon"

    def __init__(self, coordinator: GeofenceConsoleCoordinator, geofence_id: int) -> None:
        super().__init__(coordinator)
        self.geofence_id = geofence_id
        self._attr_unique_id = f"geofence_console_{coordinator.guid}_{geofence_id}_active_view"

    @property
    def _geofence(self):
        return self.coordinator.data.geofence(self.geofence_id)

    @property
    def name(self) -> str:
        geofence = self._geofence
        return f"{geofence.name if geofence else self.geofence_id} Active"

    @property
    def available(self) -> bool:
        return super().available and self._geofence is not None

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def is_on(self) -> bool | None:
        geofence = self._geofence
        return geofence.active if geofence else None

    @property
    def extra_state_attributes(self) -> dict | None:
        attributes = self.coordinator.geofence_attributes(self.geofence_id)
        if attributes is None:
            return None
        return {**attributes, "notice": READ_ONLY_NOTICE}


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add a read-only binary sensor per geofence for viewer accounts."""
    coordinator: GeofenceConsoleCoordinator = config_entry.runtime_data
    if coordinator.can_mutate:
        return

    known: dict[int, GeofenceActiveBinarySensor] = {}

    @callback
    def _sync_geofences() -> None:
        current = coordinator.data.ids

        # Deleted geofences take their entity with them
        gone = [geofence_id for geofence_id in known if geofence_id not in current]
        if gone:
            registry = er.async_get(hass)
            for geofence_id in gone:
                entity = known.pop(geofence_id)
                _LOGGER.debug("Removing entity of deleted geofence %s", geofence_id)
                if entity.entity_id:
                    registry.async_remove(entity.entity_id)

        entities = [
            GeofenceActiveBinarySensor(coordinator, geofence_id)
            for geofence_id in current
            if geofence_id not in known
        ]
        if entities:
            known.update((entity.geofence_id, entity) for entity in entities)
            async_add_entities(entities)

    _sync_geofences()
    config_entry.async_on_unload(coordinator.async_add_listener(_sync_geofences))
