"""
Status sources: the two interchangeable ways of obtaining SensorSnapshots.

- PollStatusSource answers every refresh with a fresh HTTP /status read.
- PushStatusSource keeps a WebSocket open; a refresh only sends a
  getStatus request and the snapshot arrives later through the bound
  on_snapshot callback.

Both feed the same coordinator, which owns the refresh interval. The push
source never reconnects by itself: once the socket is gone, the coordinator
reports the failure until a full refresh calls async_start again or the
entry is reloaded.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable

import aiohttp

from .api import PlantGuardianApi
from .const import (
    DEFAULT_WS_PORT,
    REQUEST_TIMEOUT,
    WS_HEARTBEAT,
    WS_COMMAND_GET_STATUS,
    WS_COMMAND_WATER_NOW,
    WS_STATUS_MESSAGE_TYPE,
)
from .errors import CommandError, DeviceConnectionError, ParseError
from .models import SensorSnapshot, parse_status

_LOGGER = logging.getLogger(__name__)


def parse_push_message(text: str) -> SensorSnapshot:
    """
    Accept either a typed envelope {"type": "status", "data": {...}} or a bare
    status object. Anything else raises ParseError.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as err:
        raise ParseError(f"Push message is not JSON: {str(text)[:100]}") from err

    if isinstance(payload, dict) and "type" in payload:
        if payload["type"] != WS_STATUS_MESSAGE_TYPE:
            raise ParseError(f"Unexpected push message type: {payload['type']!r}")
        if "data" in payload:
            payload = payload["data"]
        else:
            payload = {key: value for key, value in payload.items() if key != "type"}

    return parse_status(payload)


class StatusSource:
    """Common contract of both transports."""

    name = "base"

    def __init__(self) -> None:
        self._on_snapshot: Callable[[SensorSnapshot], None] | None = None
        self._on_disconnect: Callable[[str], None] | None = None

    def bind(
        self,
        on_snapshot: Callable[[SensorSnapshot], None],
        on_disconnect: Callable[[str], None],
    ) -> None:
        """Register the sink for unsolicited snapshots and connection loss."""
        self._on_snapshot = on_snapshot
        self._on_disconnect = on_disconnect

    async def async_start(self) -> None:
        """Acquire transport resources. Raises DeviceConnectionError."""

    async def async_request_status(self) -> SensorSnapshot | None:
        """Return a snapshot now, or None when it will arrive via on_snapshot."""
        raise NotImplementedError

    async def async_send_water(self) -> None:
        """Deliver the water-now command. Raises CommandError."""
        raise NotImplementedError

    async def async_stop(self) -> None:
        """Release transport resources."""


class PollStatusSource(StatusSource):
    """Request/response over HTTP."""

    name = "poll"

    def __init__(self, api: PlantGuardianApi) -> None:
        super().__init__()
        self.api = api

    async def async_request_status(self) -> SensorSnapshot:
        return await self.api.get_status()

    async def async_send_water(self) -> None:
        await self.api.water()


class PushStatusSource(StatusSource):
    """Subscribe/push over a persistent WebSocket."""

    name = "push"

    def __init__(self, address: str, ws_port: int = DEFAULT_WS_PORT) -> None:
        super().__init__()
        self.url = f"ws://{address}:{ws_port}"
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._listener: asyncio.Task | None = None
        self._stopping = False

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def async_start(self) -> None:
        """Open the socket, start listening and ask for a first snapshot."""
        if self.connected:
            return
        # Leftovers of a socket the device closed
        await self.async_stop()
        self._stopping = False
        self._session = aiohttp.ClientSession()
        try:
            async with asyncio.timeout(REQUEST_TIMEOUT):
                self._ws = await self._session.ws_connect(self.url, heartbeat=WS_HEARTBEAT)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            await self._session.close()
            self._session = None
            raise DeviceConnectionError(f"Cannot open WebSocket {self.url}: {exc}") from exc

        _LOGGER.debug("WebSocket connected to %s", self.url)
        self._listener = asyncio.ensure_future(self._listen())
        await self._send_command(WS_COMMAND_GET_STATUS)

    async def async_request_status(self) -> None:
        await self._send_command(WS_COMMAND_GET_STATUS)
        return None

    async def async_send_water(self) -> None:
        try:
            await self._send_command(WS_COMMAND_WATER_NOW)
        except DeviceConnectionError as exc:
            _LOGGER.error("Watering command failed: %s", exc)
            raise CommandError(f"Error watering plant: {exc}") from exc

    async def async_stop(self) -> None:
        """Cancel the listener and close the socket and its session."""
        self._stopping = True
        if self._listener is not None:
            self._listener.cancel()
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    def handle_message(self, text: str) -> None:
        """Forward a well-formed status message; log and drop anything else."""
        try:
            snapshot = parse_push_message(text)
        except ParseError as exc:
            _LOGGER.warning("Dropping malformed push message: %s", exc)
            return
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

    async def _send_command(self, command: str) -> None:
        if not self.connected:
            raise DeviceConnectionError("WebSocket is not connected")
        try:
            await self._ws.send_json({"command": command})
        except (aiohttp.ClientError, ConnectionResetError) as exc:
            raise DeviceConnectionError(f"Failed to send {command}: {exc}") from exc

    async def _listen(self) -> None:
        """Consume messages until the device closes the socket or it errors."""
        reason = "connection closed by device"
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    reason = f"connection error: {self._ws.exception()}"
                    break
        finally:
            if not self._stopping and self._on_disconnect is not None:
                self._on_disconnect(reason)
