"""
Tests for PlantGuardianCoordinator: refresh ticks, push updates,
connection loss, optimistic watering time and shutdown.
"""

from __future__ import annotations

import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from homeassistant.helpers.update_coordinator import UpdateFailed

from custom_components.plant_guardian.coordinator import SyncState, build_status_source
from custom_components.plant_guardian.coordinator_data import CoordinatorData
from custom_components.plant_guardian.errors import DeviceConnectionError, DeviceResponseError
from custom_components.plant_guardian.transport import PollStatusSource, PushStatusSource

from .test_common import (
    NOW,
    FakeStatusSource,
    capture_updates,
    make_coordinator,
    make_entry_data,
    make_event,
    make_snapshot,
)


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_data_is_empty(self):
        coord = make_coordinator()
        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertIsNone(coord.data.snapshot)
        self.assertIsNone(coord.data.last_watered_at)

    def test_initial_state_is_uninitialized(self):
        coord = make_coordinator()
        self.assertEqual(coord.state, SyncState.UNINITIALIZED)
        self.assertIsNone(coord.error)

    def test_poll_interval_comes_from_entry(self):
        coord = make_coordinator(scan_interval=5)
        self.assertEqual(coord.update_interval, timedelta(seconds=5))

    def test_push_transport_uses_fixed_interval(self):
        coord = make_coordinator(transport="push", scan_interval=5)
        self.assertEqual(coord.update_interval, timedelta(seconds=10))

    def test_build_status_source_by_transport(self):
        coord = make_coordinator()
        self.assertIsInstance(build_status_source(make_entry_data(), coord.api), PollStatusSource)
        push = build_status_source(make_entry_data(transport="push", ws_port=81), coord.api)
        self.assertIsInstance(push, PushStatusSource)
        self.assertEqual(push.url, "ws://192.168.1.100:81")

    def test_device_info_uses_address(self):
        coord = make_coordinator()
        info = coord.get_device_info()
        self.assertEqual(info["identifiers"], {("plant_guardian", "192.168.1.100")})
        self.assertEqual(info["manufacturer"], "Plant Guardian")


class TestPollRefresh(unittest.IsolatedAsyncioTestCase):

    async def test_success_returns_snapshot_and_ready(self):
        snapshot = make_snapshot(moisture="42")
        coord = make_coordinator(source=FakeStatusSource(snapshot))

        data = await coord._async_update_data()

        self.assertIs(data.snapshot, snapshot)
        self.assertEqual(coord.state, SyncState.READY)
        self.assertIsNone(coord.error)

    async def test_failure_raises_update_failed_and_keeps_previous_snapshot(self):
        previous = make_snapshot(moisture="40")
        source = FakeStatusSource()
        source.async_request_status = AsyncMock(side_effect=DeviceConnectionError("timeout"))
        coord = make_coordinator(source=source)
        coord.data = CoordinatorData(snapshot=previous)

        with self.assertRaises(UpdateFailed):
            await coord._async_update_data()

        self.assertIs(coord.data.snapshot, previous)
        self.assertEqual(coord.state, SyncState.FAILED)
        self.assertEqual(coord.error, "Error fetching sensor data")

    async def test_non_2xx_is_a_failure(self):
        source = FakeStatusSource()
        source.async_request_status = AsyncMock(side_effect=DeviceResponseError(500, "HTTP 500"))
        coord = make_coordinator(source=source)

        with self.assertRaises(UpdateFailed):
            await coord._async_update_data()
        self.assertEqual(coord.state, SyncState.FAILED)

    async def test_out_of_range_timestamp_is_a_failure(self):
        coord = make_coordinator()
        coord.source = PollStatusSource(coord.api)

        with patch("custom_components.plant_guardian.api.status.make_request",
                   new=AsyncMock(return_value={"soilMoistureRaw": "40", "lastWatered": 1e20})):
            with self.assertRaises(UpdateFailed):
                await coord._async_update_data()

        self.assertEqual(coord.state, SyncState.FAILED)
        self.assertEqual(coord.error, "Error fetching sensor data")

    async def test_next_success_clears_error(self):
        source = FakeStatusSource(make_snapshot())
        coord = make_coordinator(source=source)
        source.async_request_status.side_effect = [DeviceConnectionError("down"), make_snapshot(moisture="50")]

        with self.assertRaises(UpdateFailed):
            await coord._async_update_data()
        data = await coord._async_update_data()

        self.assertEqual(data.snapshot.soil_moisture, 50.0)
        self.assertIsNone(coord.error)
        self.assertEqual(coord.state, SyncState.READY)

    async def test_last_event_read_only_on_first_tick(self):
        coord = make_coordinator()
        event = make_event()
        coord.api.get_last_watering_event = AsyncMock(return_value=event)

        data = await coord._async_update_data()
        coord.data = data
        await coord._async_update_data()

        self.assertIs(data.last_event, event)
        coord.api.get_last_watering_event.assert_awaited_once()

    async def test_last_event_failure_does_not_fail_refresh(self):
        coord = make_coordinator()
        coord.api.get_last_watering_event = AsyncMock(side_effect=DeviceConnectionError("down"))

        data = await coord._async_update_data()

        self.assertIsNotNone(data.snapshot)
        self.assertIsNone(data.last_event)
        self.assertEqual(coord.state, SyncState.READY)

    async def test_full_refresh_rereads_last_event(self):
        coord = make_coordinator()
        coord.async_refresh = AsyncMock()
        coord._last_event_due = False

        await coord.async_full_refresh()

        self.assertTrue(coord._last_event_due)
        coord.async_refresh.assert_awaited_once()

    async def test_full_refresh_reopens_source(self):
        source = FakeStatusSource()
        source.async_start = AsyncMock(side_effect=DeviceConnectionError("refused"))
        coord = make_coordinator(source=source)
        coord.async_refresh = AsyncMock()

        await coord.async_full_refresh()

        source.async_start.assert_awaited_once()
        coord.async_refresh.assert_awaited_once()


class TestPushUpdates(unittest.IsolatedAsyncioTestCase):

    async def test_push_tick_only_requests_status(self):
        source = FakeStatusSource(None)
        coord = make_coordinator(source=source, transport="push")

        data = await coord._async_update_data()

        source.async_request_status.assert_awaited_once()
        self.assertIsNone(data.snapshot)
        self.assertEqual(coord.state, SyncState.LOADING)

    async def test_pushed_snapshot_is_applied(self):
        source = FakeStatusSource(None)
        coord = make_coordinator(source=source)
        pushed = capture_updates(coord)

        source.push(make_snapshot(moisture="33"))

        self.assertEqual(len(pushed), 1)
        self.assertEqual(coord.data.snapshot.soil_moisture, 33.0)
        self.assertEqual(coord.state, SyncState.READY)

    async def test_last_write_wins(self):
        source = FakeStatusSource(None)
        coord = make_coordinator(source=source)
        capture_updates(coord)

        source.push(make_snapshot(moisture="20"))
        source.push(make_snapshot(moisture="70"))

        self.assertEqual(coord.data.snapshot.soil_moisture, 70.0)

    async def test_disconnect_marks_failure_and_keeps_data(self):
        source = FakeStatusSource(None)
        coord = make_coordinator(source=source)
        capture_updates(coord)
        source.push(make_snapshot(moisture="20"))

        source.drop()

        self.assertEqual(coord.state, SyncState.FAILED)
        self.assertEqual(coord.error, "Connection to device lost")
        self.assertFalse(coord.last_update_success)
        self.assertEqual(coord.data.snapshot.soil_moisture, 20.0)
        coord.async_update_listeners.assert_called()

    async def test_push_after_shutdown_is_ignored(self):
        source = FakeStatusSource(None)
        coord = make_coordinator(source=source)
        pushed = capture_updates(coord)

        await coord.async_shutdown()
        source.push(make_snapshot(moisture="20"))

        self.assertEqual(pushed, [])
        self.assertIsNone(coord.data.snapshot)


class TestOptimisticWatering(unittest.IsolatedAsyncioTestCase):

    async def test_mark_watered_sets_last_watered(self):
        coord = make_coordinator()
        capture_updates(coord)

        coord.async_mark_watered(NOW)

        self.assertEqual(coord.data.last_watered_at, NOW)

    async def test_device_value_replaces_optimistic_time(self):
        device_time = NOW - timedelta(minutes=1)
        source = FakeStatusSource(make_snapshot(last_watered_at=device_time))
        coord = make_coordinator(source=source)
        capture_updates(coord)
        coord.async_mark_watered(NOW)

        data = await coord._async_update_data()

        self.assertIsNone(data.optimistic_watered_at)
        self.assertEqual(data.last_watered_at, device_time)

    async def test_snapshot_without_value_keeps_optimistic_time(self):
        coord = make_coordinator()
        capture_updates(coord)
        coord.async_mark_watered(NOW)

        data = await coord._async_update_data()

        self.assertEqual(data.last_watered_at, NOW)

    async def test_optimistic_time_beats_last_event(self):
        coord = make_coordinator()
        capture_updates(coord)
        coord.data = CoordinatorData(last_event=make_event(age=timedelta(days=2)))

        coord.async_mark_watered(NOW)

        self.assertEqual(coord.data.last_watered_at, NOW)


class TestShutdown(unittest.IsolatedAsyncioTestCase):

    async def test_shutdown_stops_source(self):
        source = FakeStatusSource()
        coord = make_coordinator(source=source)

        await coord.async_shutdown()

        source.async_stop.assert_awaited_once()

    async def test_mark_watered_after_shutdown_is_ignored(self):
        coord = make_coordinator()
        pushed = capture_updates(coord)

        await coord.async_shutdown()
        coord.async_mark_watered(NOW)

        self.assertEqual(pushed, [])

    async def test_start_delegates_to_source(self):
        source = FakeStatusSource()
        coord = make_coordinator(source=source)

        await coord.async_start()

        source.async_start.assert_awaited_once()
