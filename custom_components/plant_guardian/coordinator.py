"""
DataUpdateCoordinator for the Plant Guardian integration.

Responsibilities:
- Own the status source (HTTP poll or WebSocket push) for the lifetime of a config entry.
- Re-enter the loading state on every refresh tick; a failed read keeps the
  last good snapshot, records a user-visible error and does not stop the interval.
- Accept unsolicited snapshots from the push source into the same data sink.
- Read the newest watering event on the first refresh and on explicit full refreshes.
- Release the interval timer and the socket on shutdown.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta
from enum import Enum

from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import PlantGuardianApi
from .const import (
    CONF_ADDRESS,
    CONF_PORT,
    CONF_SCAN_INTERVAL,
    CONF_TRANSPORT,
    CONF_WS_PORT,
    DEFAULT_PORT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_TRANSPORT,
    DEFAULT_WS_PORT,
    DOMAIN,
    PUSH_REFRESH_INTERVAL,
    TRANSPORT_PUSH,
    VERSION,
)
from .coordinator_data import CoordinatorData
from .errors import DeviceConnectionError, FetchError
from .models import SensorSnapshot
from .transport import PollStatusSource, PushStatusSource, StatusSource

_LOGGER = logging.getLogger(__name__)


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def build_status_source(entry_data: dict, api: PlantGuardianApi) -> StatusSource:
    """Pick the transport configured for the entry."""
    if entry_data.get(CONF_TRANSPORT, DEFAULT_TRANSPORT) == TRANSPORT_PUSH:
        return PushStatusSource(entry_data[CONF_ADDRESS], entry_data.get(CONF_WS_PORT, DEFAULT_WS_PORT))
    return PollStatusSource(api)


class PlantGuardianCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Keeps a freshness-bounded CoordinatorData for one device.

    Overlapping responses are applied in arrival order (last write wins).
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry_data: dict,
        config_entry: config_entries.ConfigEntry | None = None,
        source: StatusSource | None = None,
    ) -> None:
        """Initialize the coordinator from config-entry data (options already merged)."""
        if entry_data.get(CONF_TRANSPORT, DEFAULT_TRANSPORT) == TRANSPORT_PUSH:
            interval = PUSH_REFRESH_INTERVAL
        else:
            interval = entry_data.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)

        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=interval),
        )

        self.api = PlantGuardianApi(entry_data[CONF_ADDRESS], entry_data.get(CONF_PORT, DEFAULT_PORT))
        self.source = source if source is not None else build_status_source(entry_data, self.api)
        self.source.bind(self._handle_pushed_snapshot, self._handle_disconnect)
        self._entry_data = entry_data

        self.state = SyncState.UNINITIALIZED
        # User-visible message of the last failure, None while healthy
        self.error: str | None = None

        # The watering log's newest entry is read on the first tick and after async_full_refresh
        self._last_event_due: bool = True
        self._closed: bool = False

        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """
        Called by HA on every update_interval tick.

        Poll transport: the returned data carries the fresh snapshot.
        Push transport: only a getStatus request is sent; the snapshot is
        applied by _handle_pushed_snapshot when it arrives.
        """
        self.state = SyncState.LOADING
        try:
            snapshot = await self.source.async_request_status()
        except FetchError as exc:
            self.state = SyncState.FAILED
            self.error = "Error fetching sensor data"
            raise UpdateFailed(f"Error fetching sensor data: {exc}") from exc

        data = self.data
        if snapshot is not None:
            data = self._apply_snapshot(data, snapshot)

        if self._last_event_due:
            data = await self._read_last_event(data)
            self._last_event_due = False

        self.error = None
        self.state = SyncState.READY if data.snapshot is not None else SyncState.LOADING
        return data

    async def _read_last_event(self, data: CoordinatorData) -> CoordinatorData:
        try:
            event = await self.api.get_last_watering_event()
        except FetchError as exc:
            _LOGGER.warning("Failed to fetch last watering event: %s", exc)
            return data
        return dataclasses.replace(data, last_event=event)

    @staticmethod
    def _apply_snapshot(data: CoordinatorData, snapshot: SensorSnapshot) -> CoordinatorData:
        """Replace the snapshot; a device-reported watering time overrides the optimistic one."""
        optimistic = data.optimistic_watered_at
        if snapshot.last_watered_at is not None:
            optimistic = None
        return dataclasses.replace(data, snapshot=snapshot, optimistic_watered_at=optimistic)

    # ------------------------------------------------------------------
    # Push path
    # ------------------------------------------------------------------

    @callback
    def _handle_pushed_snapshot(self, snapshot: SensorSnapshot) -> None:
        if self._closed:
            _LOGGER.debug("Ignoring snapshot received after shutdown")
            return
        self.state = SyncState.READY
        self.error = None
        self.async_set_updated_data(self._apply_snapshot(self.data, snapshot))

    @callback
    def _handle_disconnect(self, reason: str) -> None:
        if self._closed:
            return
        _LOGGER.warning("Lost connection to plant device %s: %s", self.api.address, reason)
        self.state = SyncState.FAILED
        self.error = "Connection to device lost"
        self.last_update_success = False
        self.async_update_listeners()

    # ------------------------------------------------------------------
    # Write path used by WateringDispatcher
    # ------------------------------------------------------------------

    @callback
    def async_mark_watered(self, when: datetime) -> None:
        """Optimistically record a watering at the client's clock."""
        if self._closed:
            return
        self.async_set_updated_data(
            dataclasses.replace(self.data, optimistic_watered_at=when)
        )

    async def async_full_refresh(self) -> None:
        """
        Refresh the readings and re-read the newest watering event.

        A push source whose socket was lost is reopened first.
        """
        self._last_event_due = True
        try:
            await self.source.async_start()
        except DeviceConnectionError as exc:
            _LOGGER.warning("Could not reconnect to plant device %s: %s", self.api.address, exc)
        await self.async_refresh()

    # ------------------------------------------------------------------
    # Entity helper: device info dict
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict for the monitored device."""
        return {
            "identifiers": {(DOMAIN, self.api.address)},
            "name": f"Plant Guardian {self.api.address}",
            "manufacturer": "Plant Guardian",
            "model": f"{self.source.name} transport",
            "sw_version": VERSION,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        """Acquire transport resources. Raises DeviceConnectionError."""
        await self.source.async_start()

    async def async_shutdown(self) -> None:
        """Cancel the interval timer and close the transport."""
        self._closed = True
        await super().async_shutdown()
        await self.source.async_stop()

    @property
    def entry_data(self):
        return self._entry_data
