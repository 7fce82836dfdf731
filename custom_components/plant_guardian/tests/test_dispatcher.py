"""
Tests for WateringDispatcher: busy flag, optimistic watering time and failures.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from custom_components.plant_guardian.dispatcher import WateringDispatcher
from custom_components.plant_guardian.errors import CommandError

from .test_common import NOW, FakeStatusSource, capture_updates, make_coordinator


class TestWateringDispatcher(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.source = FakeStatusSource()
        self.coord = make_coordinator(source=self.source)
        self.pushed = capture_updates(self.coord)
        self.dispatcher = WateringDispatcher(self.coord)

    async def test_success_marks_watered_now(self):
        with patch("custom_components.plant_guardian.dispatcher.dt_util.utcnow", return_value=NOW):
            sent = await self.dispatcher.async_water()

        self.assertTrue(sent)
        self.source.async_send_water.assert_awaited_once()
        self.assertEqual(self.coord.data.last_watered_at, NOW)
        self.assertFalse(self.dispatcher.busy)

    async def test_failure_raises_and_leaves_no_mark(self):
        self.source.async_send_water = AsyncMock(side_effect=CommandError("Error watering plant"))

        with self.assertRaises(CommandError):
            await self.dispatcher.async_water()

        self.assertEqual(self.pushed, [])
        self.assertIsNone(self.coord.data.last_watered_at)
        self.assertFalse(self.dispatcher.busy)
        self.assertEqual(self.dispatcher.error, "Error watering plant")

    async def test_second_press_while_busy_is_ignored(self):
        release = asyncio.Event()

        async def _slow_send():
            await release.wait()

        self.source.async_send_water = AsyncMock(side_effect=_slow_send)

        first = asyncio.ensure_future(self.dispatcher.async_water())
        await asyncio.sleep(0)
        self.assertTrue(self.dispatcher.busy)

        second = await self.dispatcher.async_water()
        release.set()
        self.assertTrue(await first)

        self.assertFalse(second)
        self.source.async_send_water.assert_awaited_once()

    async def test_success_after_failure_clears_error(self):
        self.source.async_send_water = AsyncMock(side_effect=[CommandError("down"), None])

        with self.assertRaises(CommandError):
            await self.dispatcher.async_water()
        self.assertTrue(await self.dispatcher.async_water())

        self.assertIsNone(self.dispatcher.error)

    async def test_listeners_see_busy_flag_change(self):
        seen = []
        self.dispatcher.async_add_listener(lambda: seen.append(self.dispatcher.busy))

        await self.dispatcher.async_water()

        self.assertEqual(seen, [True, False])

    async def test_listeners_notified_after_failure(self):
        seen = []
        remove = self.dispatcher.async_add_listener(lambda: seen.append(self.dispatcher.busy))
        self.source.async_send_water = AsyncMock(side_effect=CommandError("down"))

        with self.assertRaises(CommandError):
            await self.dispatcher.async_water()
        remove()
        self.source.async_send_water = AsyncMock()
        await self.dispatcher.async_water()

        self.assertEqual(seen, [True, False])
