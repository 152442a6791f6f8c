"""
Tests for polygon_builder.py: build, validate and vertex extraction.
"""

from __future__ import annotations

import unittest

from custom_components.geofence_console.errors import InsufficientPointsError, ValidationError
from custom_components.geofence_console.models import GeoPoint, Polygon
from custom_components.geofence_console.polygon_builder import (
    build_polygon,
    polygon_vertices,
    validate_polygon,
)

from .test_common import SQUARE_POINTS


class TestBuildPolygon(unittest.TestCase):

    def test_square_is_swapped_and_closed(self):
        polygon = build_polygon(SQUARE_POINTS)

        self.assertEqual(
            polygon.to_geojson(),
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]},
        )

    def test_ring_has_one_more_entry_than_points(self):
        points = [GeoPoint(28.61, 77.20), GeoPoint(28.62, 77.21), GeoPoint(28.60, 77.22)]

        ring = build_polygon(points).to_geojson()["coordinates"][0]

        self.assertEqual(len(ring), 4)
        self.assertEqual(ring[0], ring[-1])
        self.assertEqual(ring[0], [77.20, 28.61])

    def test_two_points_raise(self):
        with self.assertRaises(InsufficientPointsError) as ctx:
            build_polygon([GeoPoint(0, 0), GeoPoint(1, 1)])

        self.assertEqual(ctx.exception.count, 2)
        self.assertEqual(ctx.exception.required, 3)

    def test_empty_raises(self):
        with self.assertRaises(InsufficientPointsError):
            build_polygon([])

    def test_collinear_points_are_accepted(self):
        polygon = build_polygon([GeoPoint(0, 0), GeoPoint(1, 1), GeoPoint(2, 2)])

        validate_polygon(polygon)

    def test_input_is_not_modified(self):
        points = list(SQUARE_POINTS)

        build_polygon(points)

        self.assertEqual(points, SQUARE_POINTS)


class TestValidatePolygon(unittest.TestCase):

    def test_open_ring_is_rejected(self):
        polygon = Polygon(ring=((0, 0), (1, 0), (1, 1), (0, 1)))

        with self.assertRaises(ValidationError) as ctx:
            validate_polygon(polygon)

        self.assertIn("polygon", ctx.exception.field_errors)

    def test_short_ring_is_rejected(self):
        polygon = Polygon(ring=((0, 0), (1, 0), (0, 0)))

        with self.assertRaises(ValidationError):
            validate_polygon(polygon)

    def test_built_polygon_is_valid(self):
        validate_polygon(build_polygon(SQUARE_POINTS))


class TestPolygonVertices(unittest.TestCase):

    def test_returns_lat_lng_pairs(self):
        polygon_json = {"type": "Polygon", "coordinates": [[[77.2, 28.6], [77.3, 28.6], [77.3, 28.7], [77.2, 28.6]]]}

        vertices = polygon_vertices(Polygon.from_geojson(polygon_json))

        self.assertEqual(vertices[0], [28.6, 77.2])
        self.assertEqual(vertices[1], [28.6, 77.3])
        self.assertEqual(len(vertices), 4)

    def test_matches_picked_points(self):
        vertices = polygon_vertices(build_polygon(SQUARE_POINTS))

        self.assertEqual(
            vertices[:-1],
            [[p.latitude, p.longitude] for p in SQUARE_POINTS],
        )

    def test_polygon_vertices_handles_none(self):
        self.assertEqual(polygon_vertices(None), [])
