"""
Tests for PointCollector and the CaptureSession state machine.

Coverage:
- add/remove/clear keep points in capture order, without deduplication
- remove_last on an empty collector is a no-op
- IDLE -> COLLECTING -> READY -> SUBMITTED transitions
- confirm below three points raises InsufficientPointsError and keeps state
- queued commands are applied in submission order
"""

from __future__ import annotations

import unittest

from custom_components.geofence_console.errors import InsufficientPointsError, ValidationError
from custom_components.geofence_console.models import GeoPoint
from custom_components.geofence_console.point_collector import (
    CaptureSession,
    CaptureState,
    ClearPoints,
    MapPick,
    PointCollector,
    RemoveLastPoint,
)


class TestPointCollector(unittest.TestCase):

    def test_points_kept_in_capture_order(self):
        collector = PointCollector()
        collector.add_point(GeoPoint(1, 2))
        collector.add_point(GeoPoint(3, 4))
        collector.add_point(GeoPoint(5, 6))

        self.assertEqual(collector.snapshot(), (GeoPoint(1, 2), GeoPoint(3, 4), GeoPoint(5, 6)))

    def test_duplicate_points_are_kept(self):
        collector = PointCollector()
        collector.add_point(GeoPoint(1, 1))
        collector.add_point(GeoPoint(1, 1))

        self.assertEqual(len(collector), 2)

    def test_remove_last_removes_most_recent_point(self):
        collector = PointCollector()
        collector.add_point(GeoPoint(1, 2))
        collector.add_point(GeoPoint(3, 4))

        collector.remove_last()

        self.assertEqual(collector.snapshot(), (GeoPoint(1, 2),))

    def test_remove_last_on_empty_is_noop(self):
        collector = PointCollector()

        collector.remove_last()

        self.assertEqual(len(collector), 0)

    def test_clear_empties(self):
        collector = PointCollector()
        collector.add_point(GeoPoint(1, 2))

        collector.clear()

        self.assertEqual(collector.snapshot(), ())

    def test_snapshot_is_not_affected_by_later_changes(self):
        collector = PointCollector()
        collector.add_point(GeoPoint(1, 2))
        snapshot = collector.snapshot()

        collector.add_point(GeoPoint(3, 4))

        self.assertEqual(len(snapshot), 1)


class TestCaptureSession(unittest.TestCase):

    def _session_with(self, count: int) -> CaptureSession:
        session = CaptureSession()
        for i in range(count):
            session.add_point(GeoPoint(i, i))
        return session

    def test_starts_idle(self):
        session = CaptureSession()
        self.assertIs(session.state, CaptureState.IDLE)
        self.assertFalse(session.can_confirm)

    def test_first_point_moves_to_collecting(self):
        session = self._session_with(1)
        self.assertIs(session.state, CaptureState.COLLECTING)

    def test_removing_last_remaining_point_returns_to_idle(self):
        session = self._session_with(1)

        session.remove_last()

        self.assertIs(session.state, CaptureState.IDLE)

    def test_confirm_with_two_points_raises_and_stays_collecting(self):
        session = self._session_with(2)

        with self.assertRaises(InsufficientPointsError) as ctx:
            session.confirm()

        self.assertIsInstance(ctx.exception, ValidationError)
        self.assertIn("polygon", ctx.exception.field_errors)
        self.assertIn("At least 3 points are required", str(ctx.exception))
        self.assertIs(session.state, CaptureState.COLLECTING)

    def test_confirm_with_three_points_moves_to_ready(self):
        session = self._session_with(3)

        points = session.confirm()

        self.assertIs(session.state, CaptureState.READY)
        self.assertEqual(len(points), 3)

    def test_adding_point_in_ready_stays_ready(self):
        session = self._session_with(3)
        session.confirm()

        session.add_point(GeoPoint(9, 9))

        self.assertIs(session.state, CaptureState.READY)
        self.assertEqual(len(session.points), 4)

    def test_removing_below_three_in_ready_returns_to_collecting(self):
        session = self._session_with(3)
        session.confirm()

        session.remove_last()

        self.assertIs(session.state, CaptureState.COLLECTING)

    def test_cancel_discards_points(self):
        session = self._session_with(3)
        session.confirm()

        session.cancel()

        self.assertIs(session.state, CaptureState.IDLE)
        self.assertEqual(session.points, ())

    def test_mark_submitted_requires_ready(self):
        session = self._session_with(3)

        with self.assertRaises(RuntimeError):
            session.mark_submitted()

    def test_submitted_session_starts_new_drawing_on_next_pick(self):
        session = self._session_with(3)
        session.confirm()
        session.mark_submitted()

        session.add_point(GeoPoint(5, 5))

        self.assertIs(session.state, CaptureState.COLLECTING)
        self.assertEqual(session.points, (GeoPoint(5, 5),))

    def test_remove_last_after_submit_is_noop(self):
        session = self._session_with(3)
        session.confirm()
        session.mark_submitted()

        session.remove_last()

        self.assertIs(session.state, CaptureState.SUBMITTED)
        self.assertEqual(len(session.points), 3)


class TestCaptureCommands(unittest.TestCase):

    def test_commands_applied_in_order(self):
        session = CaptureSession()
        session.submit(MapPick(1, 1))
        session.submit(MapPick(2, 2))
        session.submit(RemoveLastPoint())
        session.submit(MapPick(3, 3))

        state = session.dispatch()

        self.assertIs(state, CaptureState.COLLECTING)
        self.assertEqual(session.points, (GeoPoint(1, 1), GeoPoint(3, 3)))

    def test_dispatch_with_command_applies_it(self):
        session = CaptureSession()

        session.dispatch(MapPick(10.5, 20.25))

        self.assertEqual(session.points, (GeoPoint(10.5, 20.25),))

    def test_clear_command_returns_to_idle(self):
        session = CaptureSession()
        session.dispatch(MapPick(1, 1))

        state = session.dispatch(ClearPoints())

        self.assertIs(state, CaptureState.IDLE)

    def test_unknown_command_raises_type_error(self):
        session = CaptureSession()

        with self.assertRaises(TypeError):
            session.dispatch("not-a-command")
