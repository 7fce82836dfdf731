"""
Tests for history.py: relative labels, summary statistics, chart series
and the HistoryAggregator load/retry cycle.
"""

from __future__ import annotations

import time
import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.plant_guardian.api import PlantGuardianApi
from custom_components.plant_guardian.errors import DeviceConnectionError, FetchError
from custom_components.plant_guardian.history import (
    ClimateHistoryLog,
    HistoryAggregator,
    WateringEventLog,
    build_chart_series,
    build_history_reader,
    compute_stats,
    relative_label,
)

from .test_common import NOW, make_event, make_events, make_reading


def _make_reader(events=None, name="watering_events"):
    reader = MagicMock()
    reader.name = name
    reader.async_fetch = AsyncMock(return_value=events if events is not None else [])
    return reader


class TestRelativeLabel(unittest.TestCase):

    def test_seconds(self):
        self.assertEqual(relative_label(NOW - timedelta(seconds=45), NOW), "45s")

    def test_minutes_truncate(self):
        self.assertEqual(relative_label(NOW - timedelta(seconds=90), NOW), "1m")
        self.assertEqual(relative_label(NOW - timedelta(seconds=119), NOW), "1m")

    def test_hours(self):
        self.assertEqual(relative_label(NOW - timedelta(seconds=3700), NOW), "1h")

    def test_days(self):
        self.assertEqual(relative_label(NOW - timedelta(seconds=90000), NOW), "1d")

    def test_bucket_edges(self):
        self.assertEqual(relative_label(NOW - timedelta(seconds=59), NOW), "59s")
        self.assertEqual(relative_label(NOW - timedelta(seconds=60), NOW), "1m")
        self.assertEqual(relative_label(NOW - timedelta(seconds=3600), NOW), "1h")
        self.assertEqual(relative_label(NOW - timedelta(seconds=86400), NOW), "1d")

    def test_future_timestamp_is_zero(self):
        self.assertEqual(relative_label(NOW + timedelta(minutes=5), NOW), "0s")


class TestComputeStats(unittest.TestCase):

    def test_counts_and_last_week(self):
        events = [
            make_event(1, age=timedelta(hours=1), before=10, after=50),
            make_event(2, age=timedelta(days=2), before=20, after=60),
            make_event(3, age=timedelta(days=10), before=30, after=70),
        ]
        stats = compute_stats(events, NOW)

        self.assertEqual(stats.total_count, 3)
        self.assertEqual(stats.last_week_count, 2)
        self.assertAlmostEqual(stats.averages["before"], 20.0)
        self.assertAlmostEqual(stats.averages["after"], 60.0)

    def test_exactly_seven_days_counts(self):
        stats = compute_stats([make_event(age=timedelta(days=7))], NOW)
        self.assertEqual(stats.last_week_count, 1)

    def test_empty(self):
        stats = compute_stats([], NOW)
        self.assertEqual(stats.total_count, 0)
        self.assertEqual(stats.last_week_count, 0)
        self.assertEqual(stats.averages, {})

    def test_order_independent(self):
        events = make_events(5, step=timedelta(days=2))
        self.assertEqual(compute_stats(events, NOW), compute_stats(list(reversed(events)), NOW))

    def test_climate_readings(self):
        readings = [make_reading(temperature=20, humidity=40), make_reading(temperature=24, humidity=60)]
        stats = compute_stats(readings, NOW)
        self.assertAlmostEqual(stats.averages["temperature"], 22.0)
        self.assertAlmostEqual(stats.averages["humidity"], 50.0)


class TestChartSeries(unittest.TestCase):

    def test_window_is_seven_most_recent_oldest_first(self):
        events = make_events(10)
        series = build_chart_series(events, NOW)

        self.assertEqual(len(series.labels), 7)
        self.assertEqual(series.labels, ["7h", "6h", "5h", "4h", "3h", "2h", "1h"])
        self.assertEqual(series.before, [16.0, 15.0, 14.0, 13.0, 12.0, 11.0, 10.0])
        self.assertEqual(series.after, [56.0, 55.0, 54.0, 53.0, 52.0, 51.0, 50.0])

    def test_fewer_than_window(self):
        series = build_chart_series(make_events(3), NOW)
        self.assertEqual(series.labels, ["3h", "2h", "1h"])
        self.assertEqual(len(series.before), 3)
        self.assertEqual(len(series.after), 3)

    def test_empty(self):
        series = build_chart_series([], NOW)
        self.assertTrue(series.is_empty)
        self.assertEqual(series.datasets, {})

    def test_uses_delivered_order(self):
        events = list(reversed(make_events(3)))
        series = build_chart_series(events, NOW)
        self.assertEqual(series.labels, ["1h", "2h", "3h"])


class TestHistoryReaders(unittest.IsolatedAsyncioTestCase):

    def test_default_reader_is_watering_events(self):
        self.assertIsInstance(build_history_reader({}, MagicMock()), WateringEventLog)

    def test_climate_reader_by_option(self):
        reader = build_history_reader({"history_source": "climate_history"}, MagicMock())
        self.assertIsInstance(reader, ClimateHistoryLog)

    async def test_climate_reader_fetches_history(self):
        api = MagicMock()
        api.get_climate_history = AsyncMock(return_value=[make_reading()])
        readings = await ClimateHistoryLog(api).async_fetch()
        self.assertEqual(len(readings), 1)
        api.get_climate_history.assert_awaited_once()


class TestHistoryAggregator(unittest.IsolatedAsyncioTestCase):

    async def test_load_computes_everything(self):
        events = make_events(23)
        aggregator = HistoryAggregator(_make_reader(events))
        listener = MagicMock()
        aggregator.async_add_listener(listener)

        with patch("custom_components.plant_guardian.history.dt_util.utcnow", return_value=NOW):
            await aggregator.async_load_history()

        self.assertEqual(aggregator.stats.total_count, 23)
        self.assertEqual(len(aggregator.series.labels), 7)
        self.assertEqual(aggregator.pager.total_pages, 3)
        self.assertIsNone(aggregator.error)
        self.assertFalse(aggregator.loading)
        listener.assert_called_once()

    async def test_reload_is_idempotent(self):
        events = make_events(9, step=timedelta(days=1))
        aggregator = HistoryAggregator(_make_reader(events))

        with patch("custom_components.plant_guardian.history.dt_util.utcnow", return_value=NOW):
            await aggregator.async_load_history()
            first = (aggregator.stats, aggregator.series)
            await aggregator.async_load_history(forced=True)

        self.assertEqual((aggregator.stats, aggregator.series), first)

    async def test_failure_keeps_previous_history(self):
        reader = _make_reader(make_events(4))
        aggregator = HistoryAggregator(reader)
        await aggregator.async_load_history()
        previous_stats = aggregator.stats

        reader.async_fetch = AsyncMock(side_effect=DeviceConnectionError("down"))
        with self.assertRaises(FetchError):
            await aggregator.async_load_history(forced=True)

        self.assertEqual(aggregator.error, "Error loading watering history")
        self.assertIs(aggregator.stats, previous_stats)
        self.assertEqual(len(aggregator.events), 4)
        self.assertFalse(aggregator.loading)

    async def test_retry_after_failure(self):
        reader = _make_reader()
        reader.async_fetch = AsyncMock(side_effect=[DeviceConnectionError("down"), make_events(2)])
        aggregator = HistoryAggregator(reader)

        with self.assertRaises(FetchError):
            await aggregator.async_load_history()
        await aggregator.async_retry()

        self.assertIsNone(aggregator.error)
        self.assertEqual(aggregator.stats.total_count, 2)

    async def test_fresh_history_is_not_refetched(self):
        reader = _make_reader(make_events(2))
        aggregator = HistoryAggregator(reader, ttl=60)

        await aggregator.async_load_history()
        await aggregator.async_load_history()

        reader.async_fetch.assert_awaited_once()

    async def test_stale_history_is_refetched(self):
        reader = _make_reader(make_events(2))
        aggregator = HistoryAggregator(reader, ttl=60)

        await aggregator.async_load_history()
        aggregator.last_update = time.monotonic() - 61
        await aggregator.async_load_history()

        self.assertEqual(reader.async_fetch.await_count, 2)

    async def test_reload_clamps_page_to_new_total(self):
        reader = _make_reader(make_events(23))
        aggregator = HistoryAggregator(reader)
        await aggregator.async_load_history()
        aggregator.pager.next_page()

        reader.async_fetch = AsyncMock(return_value=make_events(5))
        await aggregator.async_retry()

        self.assertEqual(aggregator.pager.page_index, 1)
        self.assertEqual(len(aggregator.pager.page.items), 5)

    async def test_remove_listener(self):
        aggregator = HistoryAggregator(_make_reader(make_events(1)))
        listener = MagicMock()
        remove = aggregator.async_add_listener(listener)
        remove()

        await aggregator.async_load_history()

        listener.assert_not_called()

    async def test_entries_with_bad_timestamps_are_skipped(self):
        payload = [
            {"id": 1, "created_at": "", "soil_moisture_before": 20, "soil_moisture_after": 60},
            {"id": 2, "created_at": 10**20, "soil_moisture_before": 20, "soil_moisture_after": 60},
            {"id": 3, "created_at": "2026-05-01T11:00:00Z", "soil_moisture_before": 30, "soil_moisture_after": 70},
        ]
        aggregator = HistoryAggregator(WateringEventLog(PlantGuardianApi("10.0.0.5")))

        with patch("custom_components.plant_guardian.api.history.make_request", new=AsyncMock(return_value=payload)), \
                patch("custom_components.plant_guardian.history.dt_util.utcnow", return_value=NOW):
            events = await aggregator.async_load_history()

        self.assertEqual([event.id for event in events], [3])
        self.assertEqual(aggregator.stats.total_count, 1)
        self.assertEqual(aggregator.stats.last_week_count, 1)
        self.assertEqual(aggregator.series.labels, ["1h"])
        self.assertIsNone(aggregator.error)

    async def test_failed_recompute_leaves_previous_history(self):
        reader = _make_reader(make_events(4))
        aggregator = HistoryAggregator(reader)
        await aggregator.async_load_history()
        previous = (aggregator.events, aggregator.stats, aggregator.series)

        reader.async_fetch = AsyncMock(return_value=make_events(9))
        with patch("custom_components.plant_guardian.history.build_chart_series", side_effect=TypeError("bad event")):
            with self.assertRaises(TypeError):
                await aggregator.async_load_history(forced=True)

        self.assertEqual((aggregator.events, aggregator.stats, aggregator.series), previous)
        self.assertEqual(aggregator.pager.total_pages, 1)
