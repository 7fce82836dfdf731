"""
SettingsSynchronizer — load/save round trip for the device preferences.

The device is the source of truth. The cached copy is only valid for the
running config entry, and a save always transmits the full record. A load
that is in flight while a save runs is not sequenced against it.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time

from .api import PlantGuardianApi
from .const import SETTINGS_TTL
from .errors import FetchError, SaveError
from .models import Preferences

_LOGGER = logging.getLogger(__name__)


class SettingsSynchronizer:
    """Cached preferences of one device."""

    def __init__(self, api: PlantGuardianApi, ttl: int = SETTINGS_TTL) -> None:
        self._api = api
        self._ttl = ttl
        self._lock = asyncio.Lock()
        self.preferences: Preferences | None = None
        self.error: str | None = None
        self.last_update: float | None = None

    async def async_load(self, forced: bool = False) -> Preferences:
        """Fetch the preferences. Raises FetchError; the cached copy is kept on failure."""
        if not forced and self.preferences is not None and self.last_update is not None:
            if (time.monotonic() - self.last_update) < self._ttl:
                return self.preferences

        async with self._lock:
            try:
                preferences = await self._api.get_preferences()
            except FetchError as exc:
                self.error = "Error loading settings"
                _LOGGER.warning("Failed to load settings: %s", exc)
                raise
            self.preferences = preferences
            self.error = None
            self.last_update = time.monotonic()
        return preferences

    async def async_save(self, preferences: Preferences) -> None:
        """Send the full record. Raises SaveError; the cache only changes on success."""
        try:
            await self._api.save_preferences(preferences)
        except SaveError:
            self.error = "Error saving settings"
            raise
        self.preferences = preferences
        self.error = None
        self.last_update = time.monotonic()

    async def async_update_field(self, **changes) -> Preferences:
        """Save the cached record with some fields changed, loading it first if needed."""
        current = self.preferences
        if current is None:
            current = await self.async_load()
        updated = dataclasses.replace(current, **changes)
        await self.async_save(updated)
        return updated
