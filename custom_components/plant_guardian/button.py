"""
Platform for plant action buttons.
Water now, refresh readings, retry the history load and move through the history pages.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.button import ButtonEntity
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError

from .coordinator import PlantGuardianCoordinator
from .dispatcher import WateringDispatcher
from .entity import PlantGuardianEntity
from .errors import CommandError, FetchError
from .history import HistoryAggregator

_LOGGER = logging.getLogger(__name__)


class PlantWaterNowButton(PlantGuardianEntity, ButtonEntity):
    """Sends the water-now command through the dispatcher."""

    def __init__(self, coordinator: PlantGuardianCoordinator, dispatcher: WateringDispatcher) -> None:
        super().__init__(coordinator, "water_now", "Water Now", "mdi:watering-can")
        self._dispatcher = dispatcher

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self.async_on_remove(self._dispatcher.async_add_listener(self.async_write_ha_state))

    @property
    def available(self) -> bool:
        return not self._dispatcher.busy

    async def async_press(self) -> None:
        try:
            sent = await self._dispatcher.async_water()
        except CommandError as e:
            raise HomeAssistantError(f"Failed to send watering command: {e}") from e
        if not sent:
            _LOGGER.debug("Water now pressed while a command is outstanding")


class PlantRefreshButton(PlantGuardianEntity, ButtonEntity):
    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "refresh", "Refresh", "mdi:refresh")

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        await self.coordinator.async_full_refresh()


class PlantHistoryRetryButton(PlantGuardianEntity, ButtonEntity):
    """Reloads the history log, bypassing the cache."""

    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator) -> None:
        super().__init__(coordinator, "refresh_history", "Refresh History", "mdi:history")
        self._history = history

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        try:
            await self._history.async_retry()
        except FetchError as e:
            raise HomeAssistantError(f"Failed to load history: {e}") from e


class PlantHistoryPageButton(PlantGuardianEntity, ButtonEntity):
    """Moves the history pager one page forward or back."""

    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator, forward: bool) -> None:
        if forward:
            super().__init__(coordinator, "history_next_page", "History Next Page", "mdi:chevron-right")
        else:
            super().__init__(coordinator, "history_previous_page", "History Previous Page", "mdi:chevron-left")
        self._history = history
        self._forward = forward

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        if self._forward:
            self._history.pager.next_page()
        else:
            self._history.pager.prev_page()
        self._history.async_update_listeners()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add buttons for passed config_entry in HA."""
    runtime_data = config_entry.runtime_data
    coordinator = runtime_data.coordinator
    async_add_entities(
        [
            PlantWaterNowButton(coordinator, runtime_data.dispatcher),
            PlantRefreshButton(coordinator),
            PlantHistoryRetryButton(coordinator, runtime_data.history),
            PlantHistoryPageButton(coordinator, runtime_data.history, forward=False),
            PlantHistoryPageButton(coordinator, runtime_data.history, forward=True),
        ]
    )
