"""
History analytics over the device's event log.

Responsibilities:
- Read the log through one of two readers (watering events or climate history).
- Recompute summary statistics and the recent-window chart series in full on every load.
- Keep the previously loaded history when a refresh fails and expose a retry.
- Hold the Pager used to browse the loaded log.
"""
from __future__ import annotations

import asyncio
import logging
import statistics
import time
from datetime import datetime, timedelta
from typing import Callable, Sequence

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.util import dt as dt_util

from .api import PlantGuardianApi
from .const import (
    CHART_WINDOW,
    CONF_HISTORY_SOURCE,
    DEFAULT_HISTORY_SOURCE,
    HISTORY_CLIMATE,
    HISTORY_TTL,
    LAST_WEEK_SECONDS,
)
from .errors import FetchError
from .models import ChartSeries, ClimateReading, HistoryStats, WateringEvent
from .pager import Pager

_LOGGER = logging.getLogger(__name__)


def relative_label(timestamp: datetime, now: datetime | None = None) -> str:
    """
    Short elapsed-time label: "45s", "1m", "1h", "1d".

    Uses the largest unit that fits and truncates (119 seconds is "1m").
    Timestamps in the future are labelled "0s".
    """
    if now is None:
        now = dt_util.utcnow()
    elapsed = max(0, int((now - timestamp).total_seconds()))
    if elapsed < 60:
        return f"{elapsed}s"
    if elapsed < 3600:
        return f"{elapsed // 60}m"
    if elapsed < 86400:
        return f"{elapsed // 3600}h"
    return f"{elapsed // 86400}d"


def compute_stats(events: Sequence, now: datetime | None = None) -> HistoryStats:
    """Counts and per-metric averages. Does not depend on the order of events."""
    if now is None:
        now = dt_util.utcnow()
    cutoff = now - timedelta(seconds=LAST_WEEK_SECONDS)
    last_week_count = sum(1 for event in events if event.created_at >= cutoff)

    averages: dict[str, float] = {}
    if events:
        for key in events[0].metrics():
            averages[key] = statistics.fmean(event.metrics()[key] for event in events)

    return HistoryStats(
        total_count=len(events),
        last_week_count=last_week_count,
        averages=averages,
    )


def build_chart_series(events: Sequence, now: datetime | None = None) -> ChartSeries:
    """
    Chart the CHART_WINDOW most recent events, oldest first.

    The log is delivered newest first, so the window is the head of the
    sequence as given; it is not re-sorted here.
    """
    if not events:
        return ChartSeries()
    if now is None:
        now = dt_util.utcnow()

    window = list(events[:CHART_WINDOW])
    window.reverse()

    labels = [relative_label(event.created_at, now) for event in window]
    datasets = {
        key: [event.metrics()[key] for event in window]
        for key in window[0].metrics()
    }
    return ChartSeries(labels=labels, datasets=datasets)


class EventLogReader:
    """Source of an event log; the two device schemas are two readers."""

    name = "base"

    def __init__(self, api: PlantGuardianApi) -> None:
        self.api = api

    async def async_fetch(self) -> list:
        raise NotImplementedError


class WateringEventLog(EventLogReader):
    """GET /watering-events, the canonical log."""

    name = "watering_events"

    async def async_fetch(self) -> list[WateringEvent]:
        return await self.api.get_watering_events()


class ClimateHistoryLog(EventLogReader):
    """GET /history: temperature and humidity samples."""

    name = "climate_history"

    async def async_fetch(self) -> list[ClimateReading]:
        return await self.api.get_climate_history()


def build_history_reader(entry_data: dict, api: PlantGuardianApi) -> EventLogReader:
    """Pick the log configured for the entry; /watering-events unless told otherwise."""
    if entry_data.get(CONF_HISTORY_SOURCE, DEFAULT_HISTORY_SOURCE) == HISTORY_CLIMATE:
        return ClimateHistoryLog(api)
    return WateringEventLog(api)


class HistoryAggregator:
    """Loaded event log plus everything derived from it."""

    def __init__(self, reader: EventLogReader, ttl: int = HISTORY_TTL) -> None:
        self._reader = reader
        self._ttl = ttl
        self._lock = asyncio.Lock()
        self._listeners: list[Callable[[], None]] = []

        self.events: list = []
        self.stats = HistoryStats()
        self.series = ChartSeries()
        self.pager = Pager()
        self.loading: bool = False
        self.error: str | None = None
        self.last_update: float | None = None

    def _is_fresh(self) -> bool:
        return self.last_update is not None and (time.monotonic() - self.last_update) < self._ttl

    async def async_load_history(self, forced: bool = False) -> list:
        """
        Fetch the log and recompute stats and chart series.

        Loads within the TTL return the events already in memory unless forced.
        On failure the previous events, stats and series stay untouched,
        error is set and FetchError is raised.
        """
        if not forced and self._is_fresh():
            _LOGGER.debug("History still fresh, skipping fetch")
            return self.events

        async with self._lock:
            if not forced and self._is_fresh():
                return self.events

            self.loading = True
            try:
                events = await self._reader.async_fetch()
            except FetchError as exc:
                self.error = "Error loading watering history"
                _LOGGER.warning("Failed to load history from %s: %s", self._reader.name, exc)
                raise
            finally:
                self.loading = False

            now = dt_util.utcnow()
            stats = compute_stats(events, now)
            series = build_chart_series(events, now)
            self.events = events
            self.stats = stats
            self.series = series
            self.pager.set_items(events)
            self.error = None
            self.last_update = time.monotonic()

        self.async_update_listeners()
        return self.events

    async def async_retry(self) -> list:
        """Retry action offered after a failed load."""
        return await self.async_load_history(forced=True)

    @callback
    def async_add_listener(self, update_callback: Callable[[], None]) -> CALLBACK_TYPE:
        """Register a callback fired after each load or page change."""
        self._listeners.append(update_callback)

        @callback
        def remove_listener() -> None:
            self._listeners.remove(update_callback)

        return remove_listener

    @callback
    def async_update_listeners(self) -> None:
        for update_callback in list(self._listeners):
            update_callback()
