"""Config flow for the Plant Guardian integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_ADDRESS,
    CONF_HISTORY_SOURCE,
    CONF_PORT,
    CONF_SCAN_INTERVAL,
    CONF_TRANSPORT,
    CONF_WS_PORT,
    DEFAULT_HISTORY_SOURCE,
    DEFAULT_PORT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_TRANSPORT,
    DEFAULT_WS_PORT,
    DOMAIN,
    HISTORY_SOURCES,
    SCAN_INTERVALS,
    TRANSPORT_POLL,
    TRANSPORTS,
)
from .device_locator import DeviceLocator, validate_address
from .errors import AddressValidationError
from .requests import build_base_url, check_device_availability

port_validator = vol.All(vol.Coerce(int), vol.Range(min=1, max=65535))

_LOGGER = logging.getLogger(__name__)
CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ADDRESS, default=''): cv.string,
                vol.Required(CONF_PORT, default=DEFAULT_PORT): port_validator,
                vol.Required(CONF_TRANSPORT, default=DEFAULT_TRANSPORT): vol.In(TRANSPORTS),
                vol.Required(CONF_SCAN_INTERVAL, default=DEFAULT_SCAN_INTERVAL): vol.In(SCAN_INTERVALS),
                vol.Required(CONF_WS_PORT, default=DEFAULT_WS_PORT): port_validator,
            }
        )


async def _validate_connection(data: Dict[str, Any]) -> str | None:
    """Return "cannot_connect" when a polled device does not answer, else None."""
    if data.get(CONF_TRANSPORT, DEFAULT_TRANSPORT) != TRANSPORT_POLL:
        return None
    base_url = build_base_url(data[CONF_ADDRESS], data.get(CONF_PORT, DEFAULT_PORT))
    if not await check_device_availability(base_url):
        return "cannot_connect"
    return None


class PlantGuardianConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            try:
                self.data[CONF_ADDRESS] = validate_address(user_input[CONF_ADDRESS])
            except AddressValidationError as e:
                errors[CONF_ADDRESS] = e.translation_key

            if not errors:
                self._async_abort_entries_match({CONF_ADDRESS: self.data[CONF_ADDRESS]})
                connection_error = await _validate_connection(self.data)
                if connection_error:
                    errors['base'] = connection_error

            if not errors:
                return self.async_create_entry(title=self.data[CONF_ADDRESS], data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    async def async_step_reconfigure(self, user_input: Optional[Dict[str, Any]] = None):
        """Change the device address of an existing entry."""
        entry = self._get_reconfigure_entry()
        errors: Dict[str, str] = {}
        if user_input is not None:
            try:
                DeviceLocator(self.hass, entry).set_address(user_input[CONF_ADDRESS])
            except AddressValidationError as e:
                errors[CONF_ADDRESS] = e.translation_key
            else:
                return self.async_abort(reason="reconfigure_successful")

        RECONFIGURE_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ADDRESS, default=entry.data.get(CONF_ADDRESS, '')): cv.string,
            }
        )
        return self.async_show_form(step_id="reconfigure", data_schema=RECONFIGURE_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _default(self, key: str, fallback: Any) -> Any:
        """Options override data, data overrides the built-in default."""
        if key in self._entry.options:
            return self._entry.options[key]
        return self._entry.data.get(key, fallback)

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        if user_input is not None:
            return self.async_create_entry(title="", data=dict(user_input))

        OPTIONS_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_TRANSPORT, default=self._default(CONF_TRANSPORT, DEFAULT_TRANSPORT)): vol.In(TRANSPORTS),
                vol.Required(CONF_SCAN_INTERVAL, default=self._default(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)): vol.In(SCAN_INTERVALS),
                vol.Required(CONF_WS_PORT, default=self._default(CONF_WS_PORT, DEFAULT_WS_PORT)): port_validator,
                vol.Required(CONF_HISTORY_SOURCE, default=self._default(CONF_HISTORY_SOURCE, DEFAULT_HISTORY_SOURCE)): vol.In(HISTORY_SOURCES),
            }
        )
        return self.async_show_form(step_id="init", data_schema=OPTIONS_SCHEMA, errors={})
