"""
WateringDispatcher — sends the water-now command.

Independent of the coordinator's read path: the command goes out through the
configured transport and, on apparent success, the coordinator is told to
record the client's current time as the last watering. That local time is
not reconciled with the device's own event time; the device's next reported
value simply replaces it.
"""
from __future__ import annotations

import logging
from typing import Callable

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.util import dt as dt_util

from .coordinator import PlantGuardianCoordinator
from .errors import CommandError

_LOGGER = logging.getLogger(__name__)


class WateringDispatcher:
    """One command at a time; calls made while busy are ignored, not queued."""

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        self._coordinator = coordinator
        self._busy = False
        self._listeners: list[Callable[[], None]] = []
        self.error: str | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        self.async_update_listeners()

    async def async_water(self) -> bool:
        """
        Send the command.

        Returns False when another command is still outstanding, True once the
        device accepted it. Raises CommandError when delivery failed; an
        earlier optimistic timestamp is left as it is.
        """
        if self._busy:
            _LOGGER.debug("Watering already in progress, ignoring request")
            return False

        self._set_busy(True)
        try:
            await self._coordinator.source.async_send_water()
        except CommandError as exc:
            self.error = str(exc)
            raise
        finally:
            self._set_busy(False)

        self.error = None
        self._coordinator.async_mark_watered(dt_util.utcnow())
        return True

    @callback
    def async_add_listener(self, update_callback: Callable[[], None]) -> CALLBACK_TYPE:
        """Register a callback fired whenever the busy flag changes."""
        self._listeners.append(update_callback)

        @callback
        def remove_listener() -> None:
            self._listeners.remove(update_callback)

        return remove_listener

    @callback
    def async_update_listeners(self) -> None:
        for update_callback in list(self._listeners):
            update_callback()
