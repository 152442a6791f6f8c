"""
CoordinatorData: immutable snapshot of the geofence collection shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import ActiveCounts, DisplayGeofence, Geofence
from .projector import find_geofence


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed snapshot of the last successful geofence fetch.

    Always replace via dataclasses.replace(), never mutate in place.
    """

    # Geofences in server order
    geofences: list[Geofence] = dataclasses.field(default_factory=list)

    # Same order, each with its palette color
    display: list[DisplayGeofence] = dataclasses.field(default_factory=list)

    counts: ActiveCounts = dataclasses.field(default_factory=ActiveCounts)

    def get(self, geofence_id: int) -> DisplayGeofence | None:
        for item in self.display:
            if item.id == geofence_id:
                return item
        return None

    def geofence(self, geofence_id: int) -> Geofence | None:
        return find_geofence(self.geofences, geofence_id)

    @property
    def ids(self) -> list[int]:
        return [item.id for item in self.display]
