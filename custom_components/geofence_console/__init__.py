import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .api.client import GeofenceConsoleApi
from .const import CONF_API_URL, CONF_PASSWORD, CONF_USERNAME, DEFAULT_API_URL, DOMAIN
from .coordinator import GeofenceConsoleCoordinator
from .errors import AuthenticationError, AuthorizationError, PersistenceError
from .requests import check_api_availability
from .services import async_register_services

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.SWITCH, Platform.BINARY_SENSOR]
_LOGGER = logging.getLogger(__name__)


async def _validate_credentials(api_url: str, username: str, password: str) -> str | None:
    """
    Try to log in once.

    Returns None on success, otherwise the config-flow error key:
    "cannot_connect", "invalid_auth" or "unsupported_role".
    """
    if not await check_api_availability(api_url):
        return "cannot_connect"
    api = GeofenceConsoleApi(api_url, username, password)
    try:
        await api.login(forced=True)
    except AuthenticationError:
        return "invalid_auth"
    except AuthorizationError:
        return "unsupported_role"
    except PersistenceError as e:
        _LOGGER.warning("Login check failed: %s", e)
        return "cannot_connect"
    return None


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    async_register_services(hass)
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    api_url = entry.data.get(CONF_API_URL) or DEFAULT_API_URL
    error = await _validate_credentials(api_url, entry.data[CONF_USERNAME], entry.data[CONF_PASSWORD])
    if error == "cannot_connect":
        raise ConfigEntryNotReady(f"Cannot connect to the geofence API at {api_url}")
    if error == "invalid_auth":
        raise ConfigEntryNotReady("Invalid geofence console credentials")
    if error == "unsupported_role":
        raise ConfigEntryNotReady("This account's role cannot use the geofence console")

    coordinator = GeofenceConsoleCoordinator(hass, dict(entry.data), entry)
    await coordinator.async_config_entry_first_refresh()

    entry.runtime_data = coordinator
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    return unloaded
