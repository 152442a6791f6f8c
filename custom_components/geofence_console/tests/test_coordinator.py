"""
Tests for GeofenceConsoleCoordinator: refresh, controller wiring, entity helpers.
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, patch

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import UpdateFailed

from custom_components.geofence_console.const import GEOFENCE_COLORS
from custom_components.geofence_console.coordinator_data import CoordinatorData
from custom_components.geofence_console.errors import AuthenticationError, PersistenceError

from .test_common import (
    attach_controller,
    make_coordinator,
    make_data,
    make_geofence,
    make_viewer,
)


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_snapshot_is_empty(self):
        coord = make_coordinator()

        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertEqual(coord.data.geofences, [])
        self.assertEqual(coord.data.counts.total, 0)

    def test_controller_unavailable_before_first_refresh(self):
        coord = make_coordinator()

        with self.assertRaises(HomeAssistantError):
            _ = coord.controller
        self.assertFalse(coord.can_mutate)

    def test_api_url_comes_from_entry(self):
        coord = make_coordinator(api_url="https://other.example.com")

        self.assertEqual(coord.api.api_url, "https://other.example.com/")


class TestCoordinatorData(unittest.TestCase):

    def test_lookup_by_id(self):
        data = make_data(make_geofence(1, name="North"), make_geofence(2))

        self.assertEqual(data.geofence(1).name, "North")
        self.assertEqual(data.get(2).color, GEOFENCE_COLORS[1])
        self.assertEqual(data.ids, [1, 2])

    def test_unknown_id(self):
        data = make_data(make_geofence(1))

        self.assertIsNone(data.geofence(9))
        self.assertIsNone(data.get(9))


class TestUpdateData(unittest.IsolatedAsyncioTestCase):

    async def test_fetch_is_projected(self):
        coord = make_coordinator()
        coord.api.get_geofences = AsyncMock(return_value=[
            make_geofence(1, active=True),
            make_geofence(2, active=False),
        ])

        data = await coord._async_update_data()

        self.assertEqual([d.color for d in data.display], GEOFENCE_COLORS[:2])
        self.assertEqual(data.counts.active, 1)
        self.assertEqual(data.counts.inactive, 1)

    async def test_controller_created_from_login_actor(self):
        coord = make_coordinator()

        await coord._async_update_data()

        self.assertTrue(coord.can_mutate)
        self.assertEqual(coord.controller.actor.username, "author")

    async def test_viewer_controller_is_read_only(self):
        coord = make_coordinator(actor=make_viewer())

        await coord._async_update_data()

        self.assertFalse(coord.can_mutate)

    async def test_controller_is_created_once(self):
        coord = make_coordinator()

        await coord._async_update_data()
        controller = coord.controller
        await coord._async_update_data()

        self.assertIs(coord.controller, controller)

    async def test_login_failure_raises_update_failed(self):
        coord = make_coordinator()
        coord.api.login = AsyncMock(side_effect=AuthenticationError("bad password"))

        with self.assertRaises(UpdateFailed):
            await coord._async_update_data()

    async def test_fetch_failure_raises_update_failed(self):
        coord = make_coordinator()
        coord.api.get_geofences = AsyncMock(side_effect=PersistenceError("Server error", 500))

        with self.assertRaises(UpdateFailed):
            await coord._async_update_data()

    async def test_selection_of_vanished_geofence_is_dropped(self):
        coord = make_coordinator()
        controller = attach_controller(coord)
        controller.select(5)
        coord.api.get_geofences = AsyncMock(return_value=[make_geofence(1)])

        await coord._async_update_data()

        self.assertIsNone(controller.selected_id)

    async def test_selection_of_existing_geofence_is_kept(self):
        coord = make_coordinator()
        controller = attach_controller(coord)
        controller.select(1)
        coord.api.get_geofences = AsyncMock(return_value=[make_geofence(1)])

        await coord._async_update_data()

        self.assertEqual(controller.selected_id, 1)


class TestEntityHelpers(unittest.TestCase):

    def test_device_info(self):
        coord = make_coordinator()

        info = coord.get_device_info()

        self.assertEqual(info["identifiers"], {("geofence_console", "test-guid")})
        self.assertEqual(info["name"], "Test Entry")
        self.assertEqual(info["model"], "Boundary Author")

    def test_geofence_attributes(self):
        coord = make_coordinator()
        controller = attach_controller(coord)
        coord.data = make_data(make_geofence(1, description="Main gate"), make_geofence(2))
        controller.select(2)

        attributes = coord.geofence_attributes(2)

        self.assertEqual(attributes["color"], GEOFENCE_COLORS[1])
        self.assertEqual(attributes["organization"], "Org Seven")
        self.assertEqual(attributes["center_point"], [28.615, 77.205])
        self.assertEqual(attributes["vertices"][0], [28.61, 77.20])
        self.assertTrue(attributes["selected"])
        self.assertFalse(coord.geofence_attributes(1)["selected"])
        self.assertEqual(coord.geofence_attributes(1)["description"], "Main gate")

    def test_geofence_attributes_unknown_id(self):
        coord = make_coordinator()

        self.assertIsNone(coord.geofence_attributes(42))

    def test_notify_creates_persistent_notification(self):
        coord = make_coordinator()

        with patch(
            "custom_components.geofence_console.coordinator.persistent_notification.async_create"
        ) as mock_create:
            coord._notify("Geofence created successfully", "Geofence created")

        mock_create.assert_called_once()
        self.assertEqual(mock_create.call_args.args[1], "Geofence created successfully")
        self.assertEqual(mock_create.call_args.kwargs["notification_id"], "geofence_console_test-guid")
