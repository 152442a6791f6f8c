"""
Unit tests for __init__.py async_setup_entry / async_unload_entry / _validate_credentials.

Coverage:
- cannot_connect / invalid_auth / unsupported_role -> ConfigEntryNotReady before the coordinator is created
- valid credentials + coordinator success -> returns True, runtime_data set
- first-refresh failure propagates ConfigEntryNotReady
- _validate_credentials maps each login outcome to its error key
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from homeassistant.exceptions import ConfigEntryNotReady

from custom_components.geofence_console.errors import (
    AuthenticationError,
    AuthorizationError,
    PersistenceError,
)

from .test_common import make_entry_data


def _make_mock_entry() -> MagicMock:
    """Return a minimal mock ConfigEntry."""
    entry = MagicMock()
    entry.entry_id = "entry-1"
    entry.data = make_entry_data()
    entry.async_on_unload = MagicMock()
    entry.add_update_listener = MagicMock(return_value=MagicMock())
    return entry


class TestAsyncSetupEntry(unittest.IsolatedAsyncioTestCase):
    """Tests for async_setup_entry in __init__.py."""

    async def _assert_not_ready(self, error: str, message: str):
        from custom_components.geofence_console import async_setup_entry

        hass = MagicMock()
        entry = _make_mock_entry()

        with patch(
            "custom_components.geofence_console._validate_credentials",
            new=AsyncMock(return_value=error),
        ), patch("custom_components.geofence_console.GeofenceConsoleCoordinator") as MockCoord:
            with self.assertRaises(ConfigEntryNotReady) as ctx:
                await async_setup_entry(hass, entry)

        self.assertIn(message, str(ctx.exception))
        MockCoord.assert_not_called()

    async def test_cannot_connect_raises_config_entry_not_ready(self):
        await self._assert_not_ready("cannot_connect", "Cannot connect")

    async def test_invalid_auth_raises_config_entry_not_ready(self):
        await self._assert_not_ready("invalid_auth", "credentials")

    async def test_unsupported_role_raises_config_entry_not_ready(self):
        await self._assert_not_ready("unsupported_role", "role")

    async def test_valid_credentials_completes_setup(self):
        from custom_components.geofence_console import async_setup_entry

        hass = MagicMock()
        hass.data = {}
        hass.config_entries.async_forward_entry_setups = AsyncMock()
        entry = _make_mock_entry()

        mock_coordinator = MagicMock()
        mock_coordinator.async_config_entry_first_refresh = AsyncMock()

        with patch(
            "custom_components.geofence_console._validate_credentials",
            new=AsyncMock(return_value=None),
        ), patch(
            "custom_components.geofence_console.GeofenceConsoleCoordinator",
            return_value=mock_coordinator,
        ):
            result = await async_setup_entry(hass, entry)

        self.assertTrue(result)
        self.assertEqual(entry.runtime_data, mock_coordinator)
        self.assertIs(hass.data["geofence_console"]["entry-1"], mock_coordinator)
        hass.config_entries.async_forward_entry_setups.assert_awaited_once()

    async def test_coordinator_first_refresh_failure_raises_config_entry_not_ready(self):
        from custom_components.geofence_console import async_setup_entry

        hass = MagicMock()
        entry = _make_mock_entry()

        mock_coordinator = MagicMock()
        mock_coordinator.async_config_entry_first_refresh = AsyncMock(
            side_effect=ConfigEntryNotReady("refresh failed")
        )

        with patch(
            "custom_components.geofence_console._validate_credentials",
            new=AsyncMock(return_value=None),
        ), patch(
            "custom_components.geofence_console.GeofenceConsoleCoordinator",
            return_value=mock_coordinator,
        ):
            with self.assertRaises(ConfigEntryNotReady):
                await async_setup_entry(hass, entry)

    async def test_unload_forgets_coordinator(self):
        from custom_components.geofence_console import async_unload_entry

        hass = MagicMock()
        hass.data = {"geofence_console": {"entry-1": MagicMock()}}
        hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
        entry = _make_mock_entry()

        self.assertTrue(await async_unload_entry(hass, entry))
        self.assertNotIn("entry-1", hass.data["geofence_console"])


class TestValidateCredentials(unittest.IsolatedAsyncioTestCase):

    async def _validate(self, login_side_effect=None, reachable=True):
        from custom_components.geofence_console import _validate_credentials

        with patch(
            "custom_components.geofence_console.check_api_availability",
            new=AsyncMock(return_value=reachable),
        ), patch(
            "custom_components.geofence_console.GeofenceConsoleApi.login",
            new=AsyncMock(side_effect=login_side_effect),
        ):
            return await _validate_credentials("https://geofence.example.com", "author", "secret")

    async def test_success(self):
        self.assertIsNone(await self._validate())

    async def test_unreachable(self):
        self.assertEqual(await self._validate(reachable=False), "cannot_connect")

    async def test_rejected_credentials(self):
        self.assertEqual(await self._validate(AuthenticationError("no")), "invalid_auth")

    async def test_unsupported_role(self):
        self.assertEqual(await self._validate(AuthorizationError("no")), "unsupported_role")

    async def test_backend_error(self):
        self.assertEqual(await self._validate(PersistenceError("down", 503)), "cannot_connect")

    async def test_organization_lookup_failure_still_validates(self):
        from custom_components.geofence_console import _validate_credentials
        from custom_components.geofence_console.api import auth

        login_response = auth.LoginResponse(
            {"access": "token", "user": {"id": 3, "username": "author", "role": "SUB_ADMIN"}}
        )
        with patch(
            "custom_components.geofence_console.check_api_availability",
            new=AsyncMock(return_value=True),
        ), patch.object(auth, "login", new=AsyncMock(return_value=login_response)), patch(
            "custom_components.geofence_console.api.auth.make_request",
            new=AsyncMock(side_effect=ValueError("Expected JSON but got text/html")),
        ):
            result = await _validate_credentials("https://geofence.example.com", "author", "secret")

        self.assertIsNone(result)
