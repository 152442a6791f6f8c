"""
Turns captured points into a closed GeoJSON polygon and back.

Capture order is (latitude, longitude); storage order is [longitude, latitude].
The conversion happens only in this module.

Only the point count and ring closure are checked. Self-intersecting or
zero-area shapes are accepted.
"""
from __future__ import annotations

import logging
from typing import Sequence

from .const import MIN_POLYGON_POINTS
from .errors import InsufficientPointsError, ValidationError
from .models import GeoPoint, Polygon

_LOGGER = logging.getLogger(__name__)


def build_polygon(points: Sequence[GeoPoint]) -> Polygon:
    """
    Build a closed single-ring polygon from points in the order they were picked.

    Raises InsufficientPointsError for fewer than three points.
    """
    if len(points) < MIN_POLYGON_POINTS:
        raise InsufficientPointsError(len(points), MIN_POLYGON_POINTS)

    ring = [(float(point.longitude), float(point.latitude)) for point in points]
    ring.append(ring[0])
    _LOGGER.debug("Built polygon from %s points", len(points))
    return Polygon(ring=tuple(ring))


def validate_polygon(polygon: Polygon) -> None:
    """Raise ValidationError unless polygon is a closed ring of at least three vertices."""
    ring = polygon.ring
    if len(ring) < MIN_POLYGON_POINTS + 1:
        raise ValidationError({"polygon": f"Polygon ring needs at least {MIN_POLYGON_POINTS + 1} positions"})
    if ring[0] != ring[-1]:
        raise ValidationError({"polygon": "Polygon ring is not closed"})


def polygon_vertices(polygon: Polygon | None) -> list[list[float]]:
    """Convert a stored polygon to [latitude, longitude] pairs for map display."""
    if polygon is None:
        return []
    return [[lat, lng] for lng, lat in polygon.ring]
