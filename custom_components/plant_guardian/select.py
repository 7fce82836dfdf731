"""Page size selector for browsing the history log."""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.select import SelectEntity
from homeassistant.core import HomeAssistant

from .const import PAGE_SIZES
from .coordinator import PlantGuardianCoordinator
from .entity import PlantGuardianEntity
from .history import HistoryAggregator

_LOGGER = logging.getLogger(__name__)


class PlantHistoryPageSizeSelect(PlantGuardianEntity, SelectEntity):
    _attr_options = [str(size) for size in PAGE_SIZES]

    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator) -> None:
        super().__init__(coordinator, "history_page_size", "History Page Size", "mdi:format-list-numbered")
        self._history = history

    @property
    def available(self) -> bool:
        return True

    @property
    def current_option(self) -> str:
        return str(self._history.pager.page_size)

    async def async_select_option(self, option: str) -> None:
        """Change the page size; the pager goes back to page 1."""
        self._history.pager.set_page_size(int(option))
        _LOGGER.debug("History page size set to %s", option)
        self._history.async_update_listeners()
        self.async_write_ha_state()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    runtime_data = config_entry.runtime_data
    async_add_entities([PlantHistoryPageSizeSelect(runtime_data.coordinator, runtime_data.history)])
