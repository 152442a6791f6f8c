"""Config flow for the Geofence Console integration."""
from __future__ import annotations
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from . import _validate_credentials
from .const import (
    CONF_API_URL,
    CONF_ENTRY_NAME,
    CONF_GUID,
    CONF_PASSWORD,
    CONF_USERNAME,
    DEFAULT_API_URL,
    DEFAULT_ENTRY_NAME,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)
CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default=DEFAULT_ENTRY_NAME): cv.string,
                vol.Required(CONF_API_URL, default=DEFAULT_API_URL): cv.string,
                vol.Required(CONF_USERNAME, default=''): cv.string,
                vol.Required(CONF_PASSWORD, default=''): cv.string,
            }
        )


def _required_field_errors(user_input: Dict[str, Any], fields) -> Dict[str, str]:
    """Return {"base": "<field>_required"} for the last empty field, if any."""
    errors: Dict[str, str] = {}
    for field in fields:
        if not user_input.get(field):
            errors['base'] = f'{field}_required'
    return errors


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = user_input
            # Create new guid for the entry
            self.data[CONF_GUID] = str(uuid.uuid4())
            errors = _required_field_errors(
                self.data, (CONF_ENTRY_NAME, CONF_API_URL, CONF_USERNAME, CONF_PASSWORD)
            )
            if not errors:
                self._async_abort_entries_match(
                    {CONF_API_URL: self.data[CONF_API_URL], CONF_USERNAME: self.data[CONF_USERNAME]}
                )
                error = await _validate_credentials(
                    self.data[CONF_API_URL], self.data[CONF_USERNAME], self.data[CONF_PASSWORD]
                )
                if error:
                    errors['base'] = error
            if not errors:
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _default(self, key: str, fallback: Any = '') -> Any:
        """Options take precedence over the original entry data."""
        if key in self._entry.options:
            return self._entry.options[key]
        return self._entry.data.get(key, fallback)

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            errors = _required_field_errors(user_input, (CONF_API_URL, CONF_USERNAME, CONF_PASSWORD))
            if not errors:
                error = await _validate_credentials(
                    user_input[CONF_API_URL], user_input[CONF_USERNAME], user_input[CONF_PASSWORD]
                )
                if error:
                    errors['base'] = error
            if not errors:
                new_data = {
                    CONF_GUID: self._entry.data[CONF_GUID],
                    CONF_ENTRY_NAME: user_input[CONF_ENTRY_NAME],
                    CONF_API_URL: user_input[CONF_API_URL],
                    CONF_USERNAME: user_input[CONF_USERNAME],
                    CONF_PASSWORD: user_input[CONF_PASSWORD],
                }

                # Rename the entry in the UI; the update listener reloads it
                self.hass.config_entries.async_update_entry(
                    self._entry,
                    data=new_data,
                    title=new_data[CONF_ENTRY_NAME],
                )

                return self.async_create_entry(title=f"{new_data[CONF_ENTRY_NAME]}", data=new_data)

        OPTIONS_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default=self._default(CONF_ENTRY_NAME)): cv.string,
                vol.Required(CONF_API_URL, default=self._default(CONF_API_URL, DEFAULT_API_URL)): cv.string,
                vol.Required(CONF_USERNAME, default=self._default(CONF_USERNAME)): cv.string,
                vol.Required(CONF_PASSWORD, default=self._default(CONF_PASSWORD)): cv.string,
            }
        )
        return self.async_show_form(step_id="init", data_schema=OPTIONS_SCHEMA, errors=errors)
