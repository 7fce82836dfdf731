"""
Platform for the plant watering threshold.
The threshold lives on the device next to the notification switches and is
saved through the same SettingsSynchronizer.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant import config_entries
from homeassistant.components.number import NumberEntity, NumberMode
from homeassistant.const import PERCENTAGE, EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo

from .coordinator import PlantGuardianCoordinator
from .errors import FetchError, SaveError
from .settings_sync import SettingsSynchronizer

_LOGGER = logging.getLogger(__name__)
SCAN_INTERVAL = timedelta(seconds=30)


class PlantWateringThresholdNumber(NumberEntity):
    """Soil moisture percentage below which the device asks for water."""

    _attr_entity_category = EntityCategory.CONFIG
    _attr_native_min_value = 0
    _attr_native_max_value = 100
    _attr_native_step = 1
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_mode = NumberMode.SLIDER

    def __init__(self, coordinator: PlantGuardianCoordinator, settings: SettingsSynchronizer) -> None:
        self._coordinator = coordinator
        self._settings = settings
        self._attr_unique_id = f"plant_guardian_{coordinator.api.address}_watering_threshold"
        self._attr_name = "Plant Watering Threshold"
        self._attr_icon = "mdi:water-alert-outline"

    async def async_update(self) -> None:
        try:
            await self._settings.async_load()
        except FetchError as e:
            _LOGGER.debug("Preferences unavailable: %s", e)

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._coordinator.get_device_info()

    @property
    def should_poll(self) -> bool:
        return True

    @property
    def available(self) -> bool:
        return self._settings.preferences is not None

    @property
    def native_value(self) -> float | None:
        if self._settings.preferences is None:
            return None
        return self._settings.preferences.watering_threshold

    async def async_set_native_value(self, value: float) -> None:
        """Save the full preferences record with the new threshold."""
        try:
            await self._settings.async_update_field(watering_threshold=int(round(value)))
        except (FetchError, SaveError) as e:
            raise HomeAssistantError(f"Failed to save plant preferences: {e}") from e
        self.async_write_ha_state()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the threshold number for passed config_entry in HA."""
    runtime_data = config_entry.runtime_data
    async_add_entities(
        [PlantWateringThresholdNumber(runtime_data.coordinator, runtime_data.settings)],
        update_before_add=True,
    )
