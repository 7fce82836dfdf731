"""
Platform for plant preference switches.
This module is responsible for setting up the notification and temperature alert switches
and keeping them in sync with the preferences stored on the plant device.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from homeassistant import config_entries
from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo

from .coordinator import PlantGuardianCoordinator
from .errors import FetchError, SaveError
from .settings_sync import SettingsSynchronizer

_LOGGER = logging.getLogger(__name__)
SCAN_INTERVAL = timedelta(seconds=30)

PREFERENCE_NAMES = {
    "notifications_enabled": "Notifications",
    "temperature_alerts": "Temperature Alerts",
}


class PlantPreferenceSwitch(SwitchEntity):
    """
    Representation of one boolean device preference.
    Reads and writes through the SettingsSynchronizer created in async_setup_entry;
    every change sends the full preferences record to the device.
    """
    _attr_entity_category = EntityCategory.CONFIG

    def __init__(self, coordinator: PlantGuardianCoordinator, settings: SettingsSynchronizer, field: str) -> None:
        """Initialize the switch."""
        self._coordinator = coordinator
        self._settings = settings
        self._field = field
        self._attr_unique_id = f"plant_guardian_{coordinator.api.address}_{field}"
        self._attr_name = f"Plant {PREFERENCE_NAMES[field]}"
        self._attr_icon = "mdi:bell-cog"

    async def async_update(self) -> None:
        """Update the switch state."""
        try:
            await self._settings.async_load()
        except FetchError as e:
            _LOGGER.debug("Preferences unavailable: %s", e)

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self._coordinator.get_device_info()

    @property
    def should_poll(self) -> bool:
        return True

    @property
    def device_class(self) -> SwitchDeviceClass | str | None:
        return SwitchDeviceClass.SWITCH

    @property
    def available(self) -> bool:
        return self._settings.preferences is not None

    @property
    def is_on(self) -> bool | None:
        """Return true if the preference is enabled."""
        if self._settings.preferences is None:
            return None
        return getattr(self._settings.preferences, self._field)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        preferences = self._settings.preferences
        return {
            "watering_threshold": preferences.watering_threshold if preferences else None,
            "error": self._settings.error,
        }

    async def _async_set(self, value: bool) -> None:
        try:
            await self._settings.async_update_field(**{self._field: value})
        except (FetchError, SaveError) as e:
            raise HomeAssistantError(f"Failed to save plant preferences: {e}") from e
        self.async_write_ha_state()

    async def async_turn_on(self, **kwargs) -> None:
        """Turn the switch on."""
        await self._async_set(True)

    async def async_turn_off(self, **kwargs) -> None:
        """Turn the switch off."""
        await self._async_set(False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add switches for passed config_entry in HA."""
    runtime_data = config_entry.runtime_data
    entities = [
        PlantPreferenceSwitch(runtime_data.coordinator, runtime_data.settings, field)
        for field in PREFERENCE_NAMES
    ]
    async_add_entities(entities, update_before_add=True)
