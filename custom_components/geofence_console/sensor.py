"""
Platform for geofence summary sensors.
This module sets up the total/active/inactive geofence counters and the
boundary capture sensor for authors.
"""
from __future__ import annotations

import logging

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import MIN_POLYGON_POINTS
from .coordinator import GeofenceConsoleCoordinator
from .polygon_builder import build_polygon
from .projector import STATUS_ACTIVE, STATUS_ALL, STATUS_INACTIVE, filter_by_status

_LOGGER = logging.getLogger(__name__)


class GeofenceCountSensor(CoordinatorEntity[GeofenceConsoleCoordinator], SensorEntity):
    """Number of geofences with the given status."""

    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = "geofences"

    def __init__(self, coordinator: GeofenceConsoleCoordinator, status: str) -> None:
        super().__init__(coordinator)
        self._status = status
        self._attr_unique_id = f"geofence_console_{coordinator.guid}_{status}_count"
        self._attr_name = f"{coordinator.entry_name} {status.title()} Geofences"
        self._attr_icon = "mdi:map-marker-radius" if status == STATUS_ACTIVE else "mdi:map-marker-multiple"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def native_value(self) -> int:
        counts = self.coordinator.data.counts
        if self._status == STATUS_ACTIVE:
            return counts.active
        if self._status == STATUS_INACTIVE:
            return counts.inactive
        return counts.total

    @property
    def extra_state_attributes(self) -> dict:
        # Legend of the geofences counted by this sensor
        items = filter_by_status(self.coordinator.data.display, self._status)
        return {
            "geofences": [
                {"id": item.id, "name": item.geofence.name, "color": item.color}
                for item in items
            ],
        }


class BoundaryCaptureSensor(CoordinatorEntity[GeofenceConsoleCoordinator], SensorEntity):
    """Points of the boundary being drawn. State is the point count."""

    _attr_icon = "mdi:vector-polyline-edit"
    _attr_native_unit_of_measurement = "points"

    def __init__(self, coordinator: GeofenceConsoleCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"geofence_console_{coordinator.guid}_boundary_capture"
        self._attr_name = f"{coordinator.entry_name} Boundary Capture"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def native_value(self) -> int:
        return len(self.coordinator.capture.points)

    @property
    def extra_state_attributes(self) -> dict:
        capture = self.coordinator.capture
        points = capture.points
        attributes = {
            "capture_state": capture.state.value,
            "points": [[p.latitude, p.longitude] for p in points],
            "can_confirm": capture.can_confirm,
            "points_needed": max(MIN_POLYGON_POINTS - len(points), 0),
        }
        if capture.can_confirm:
            attributes["polygon_json"] = build_polygon(points).to_geojson()
        return attributes


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the summary sensors, plus the capture sensor for boundary authors."""
    coordinator: GeofenceConsoleCoordinator = config_entry.runtime_data
    entities: list[SensorEntity] = [
        GeofenceCountSensor(coordinator, status)
        for status in (STATUS_ALL, STATUS_ACTIVE, STATUS_INACTIVE)
    ]
    if coordinator.can_mutate:
        entities.append(BoundaryCaptureSensor(coordinator))
    async_add_entities(entities)
