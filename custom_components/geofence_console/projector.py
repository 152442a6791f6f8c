"""
Display projection of the geofence collection.

Colors are assigned from the palette by list position, so they follow the
order of the last fetch and are never written back to the backend.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from .const import GEOFENCE_COLORS
from .models import ActiveCounts, DisplayGeofence, Geofence

STATUS_ALL = "all"
STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"


def project(
    geofences: Sequence[Geofence], palette: Sequence[str] = GEOFENCE_COLORS
) -> list[DisplayGeofence]:
    """Pair each geofence with palette[index mod len(palette)]."""
    if not palette:
        raise ValueError("Palette must contain at least one color")
    return [
        DisplayGeofence(geofence=geofence, color=palette[index % len(palette)])
        for index, geofence in enumerate(geofences)
    ]


def group_by_active(geofences: Iterable[Geofence | DisplayGeofence]) -> ActiveCounts:
    active = 0
    inactive = 0
    for geofence in geofences:
        if geofence.active:
            active += 1
        else:
            inactive += 1
    return ActiveCounts(active=active, inactive=inactive)


def filter_by_status(
    display: Sequence[DisplayGeofence], status: str = STATUS_ALL
) -> list[DisplayGeofence]:
    """Keep all, only active, or only inactive geofences. Colors are preserved."""
    if status == STATUS_ALL:
        return list(display)
    if status == STATUS_ACTIVE:
        return [item for item in display if item.active]
    if status == STATUS_INACTIVE:
        return [item for item in display if not item.active]
    raise ValueError(f"Unknown status filter: {status}")


def find_geofence(geofences: Iterable[Geofence], geofence_id: int) -> Geofence | None:
    for geofence in geofences:
        if geofence.id == geofence_id:
            return geofence
    return None
