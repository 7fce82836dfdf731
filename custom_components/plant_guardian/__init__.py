import dataclasses
import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    CONF_ADDRESS,
    CONF_PORT,
    CONF_TRANSPORT,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
    DOMAIN,
    TRANSPORT_POLL,
)
from .coordinator import PlantGuardianCoordinator
from .dispatcher import WateringDispatcher
from .errors import DeviceConnectionError
from .history import HistoryAggregator, build_history_reader
from .requests import build_base_url, check_device_availability
from .settings_sync import SettingsSynchronizer

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BUTTON, Platform.SELECT, Platform.SWITCH, Platform.NUMBER]
_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass
class PlantGuardianRuntimeData:
    """Everything a config entry owns while it is loaded."""

    coordinator: PlantGuardianCoordinator
    dispatcher: WateringDispatcher
    history: HistoryAggregator
    settings: SettingsSynchronizer


def merged_entry_data(entry: config_entries.ConfigEntry) -> dict:
    """Entry data with options applied on top."""
    return {**entry.data, **entry.options}


async def _validate_device(entry_data: dict) -> str | None:
    """
    Probe the device before creating the coordinator.

    Returns None when reachable, "cannot_connect" otherwise. The push
    transport is validated by opening its socket instead.
    """
    if entry_data.get(CONF_TRANSPORT, DEFAULT_TRANSPORT) != TRANSPORT_POLL:
        return None
    base_url = build_base_url(entry_data[CONF_ADDRESS], entry_data.get(CONF_PORT, DEFAULT_PORT))
    if not await check_device_availability(base_url):
        return "cannot_connect"
    return None


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    entry_data = merged_entry_data(entry)
    address = entry_data.get(CONF_ADDRESS)
    if not address:
        raise ConfigEntryNotReady("No plant device address configured")

    if await _validate_device(entry_data) == "cannot_connect":
        raise ConfigEntryNotReady(f"Plant device at {address} is not reachable")

    coordinator = PlantGuardianCoordinator(hass, entry_data, entry)
    try:
        await coordinator.async_start()
    except DeviceConnectionError as exc:
        await coordinator.source.async_stop()
        raise ConfigEntryNotReady(str(exc)) from exc

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady:
        await coordinator.async_shutdown()
        raise

    entry.runtime_data = PlantGuardianRuntimeData(
        coordinator=coordinator,
        dispatcher=WateringDispatcher(coordinator),
        history=HistoryAggregator(build_history_reader(entry_data, coordinator.api)),
        settings=SettingsSynchronizer(coordinator.api),
    )

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle data or options updates (including a new device address)."""
    # Reload so the status source is rebuilt against the new settings.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry and release the interval timer and socket."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.coordinator.async_shutdown()
    return unloaded
