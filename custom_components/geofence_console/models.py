"""
Domain models for the geofence console.

This module contains pure data classes representing geofence entities.
These classes have no dependencies on HTTP, API logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from datetime import datetime
from typing import Any, Mapping

from .const import ROLE_BOUNDARY_AUTHOR, ROLE_BOUNDARY_VIEWER

_LOGGER = logging.getLogger(__name__)

# Fields a caller may change once a geofence exists
PATCHABLE_FIELDS = ("name", "description", "active")
# Geometry keys that must never travel through an update
GEOMETRY_FIELDS = ("polygon", "polygon_json", "coordinates")


@dataclasses.dataclass(frozen=True)
class GeoPoint:
    """A single picked map location, in capture order (latitude, longitude)."""

    latitude: float
    longitude: float


@dataclasses.dataclass(frozen=True)
class Polygon:
    """
    A single-ring GeoJSON polygon.

    ring holds [longitude, latitude] pairs; for a valid polygon the first and
    last pairs are identical. Holes are not modeled.
    """

    ring: tuple[tuple[float, float], ...]

    def to_geojson(self) -> dict:
        return {
            "type": "Polygon",
            "coordinates": [[[lng, lat] for lng, lat in self.ring]],
        }

    @classmethod
    def from_geojson(cls, data: Mapping[str, Any]) -> Polygon:
        """Parse a GeoJSON Polygon mapping. Only the outer ring is kept."""
        if not isinstance(data, Mapping) or data.get("type") != "Polygon":
            raise ValueError(f"Not a GeoJSON Polygon: {data!r}")
        coordinates = data.get("coordinates")
        if not coordinates or not isinstance(coordinates, list):
            raise ValueError("Polygon has no coordinate rings")
        ring = tuple((float(pair[0]), float(pair[1])) for pair in coordinates[0])
        return cls(ring=ring)


class Role(enum.Enum):
    """The two roles that take part in geofence management."""

    BOUNDARY_AUTHOR = ROLE_BOUNDARY_AUTHOR
    BOUNDARY_VIEWER = ROLE_BOUNDARY_VIEWER

    @classmethod
    def from_api(cls, value: str | None) -> Role | None:
        """Map a backend role string; returns None for roles outside this console."""
        for role in cls:
            if role.value == value:
                return role
        return None


@dataclasses.dataclass(frozen=True)
class Actor:
    """The logged-in user, resolved once per session."""

    user_id: int
    username: str
    role: Role
    organization_id: int | None = None
    organization_name: str | None = None

    @property
    def can_mutate(self) -> bool:
        return self.role is Role.BOUNDARY_AUTHOR


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        _LOGGER.debug("Unparseable timestamp: %s", value)
        return None


@dataclasses.dataclass(frozen=True)
class Geofence:
    """A persisted geofence as returned by the backend."""

    id: int
    name: str
    organization: int | None
    polygon: Polygon | None
    active: bool = True
    description: str | None = None
    organization_name: str | None = None
    center_point: tuple[float, float] | None = None
    created_by: int | None = None
    created_by_username: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Geofence:
        """Map a raw API geofence dict onto a Geofence instance."""
        polygon = None
        if data.get("polygon_json"):
            try:
                polygon = Polygon.from_geojson(data["polygon_json"])
            except (ValueError, TypeError, IndexError) as exc:
                _LOGGER.warning("Geofence %s has an unreadable polygon: %s", data.get("id"), exc)

        center = data.get("center_point")
        center_point = None
        if center and len(center) == 2:
            center_point = (float(center[0]), float(center[1]))

        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or None,
            organization=data.get("organization"),
            organization_name=data.get("organization_name"),
            polygon=polygon,
            active=bool(data.get("active", True)),
            center_point=center_point,
            created_by=data.get("created_by"),
            created_by_username=data.get("created_by_username"),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


@dataclasses.dataclass(frozen=True)
class GeofenceCreate:
    """Input for creating a geofence. The polygon is written once, here."""

    name: str
    polygon: Polygon
    organization_id: int | None = None
    description: str | None = None

    def to_payload(self, organization_id: int) -> dict:
        payload: dict[str, Any] = {
            "name": self.name.strip(),
            "polygon_json": self.polygon.to_geojson(),
            "organization": organization_id,
            "active": True,
        }
        if self.description:
            payload["description"] = self.description
        return payload


@dataclasses.dataclass(frozen=True)
class GeofencePatch:
    """
    Input for updating a geofence.

    Only name, description and active exist on this type; there is no way to
    express a geometry change through it.
    """

    name: str | None = None
    description: str | None = None
    active: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeofencePatch:
        """Build a patch from loose keyword data, refusing geometry and unknown keys."""
        geometry = [key for key in data if key in GEOMETRY_FIELDS]
        if geometry:
            raise TypeError(
                f"Geofence geometry is immutable after creation; got {', '.join(geometry)}"
            )
        unknown = [key for key in data if key not in PATCHABLE_FIELDS]
        if unknown:
            raise TypeError(f"Unsupported geofence update fields: {', '.join(unknown)}")
        return cls(**dict(data))

    def is_empty(self) -> bool:
        return self.name is None and self.description is None and self.active is None

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {}
        if self.name is not None:
            payload["name"] = self.name.strip()
        if self.description is not None:
            payload["description"] = self.description
        if self.active is not None:
            payload["active"] = self.active
        return payload


@dataclasses.dataclass(frozen=True)
class DisplayGeofence:
    """A geofence decorated with display-only attributes. Never persisted."""

    geofence: Geofence
    color: str

    @property
    def id(self) -> int:
        return self.geofence.id

    @property
    def active(self) -> bool:
        return self.geofence.active


@dataclasses.dataclass(frozen=True)
class ActiveCounts:
    """Summary counters for the geofence collection."""

    active: int = 0
    inactive: int = 0

    @property
    def total(self) -> int:
        return self.active + self.inactive
