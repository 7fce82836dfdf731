"""
HTTP client for a single plant device.

Thin object wrapper around the low-level endpoint modules so callers only
have to know the device address once.
"""
from __future__ import annotations

from custom_components.plant_guardian.models import (
    ClimateReading,
    Preferences,
    SensorSnapshot,
    WateringEvent,
)
from custom_components.plant_guardian.requests import build_base_url

from .history import fetch_climate_history, fetch_watering_events
from .settings import fetch_preferences, save_preferences
from .status import fetch_last_watering_event, fetch_status
from .watering import send_water_command


class PlantGuardianApi:
    """Endpoint access for the device at address[:port]."""

    def __init__(self, address: str, port: int | None = None) -> None:
        self.address = address
        self.port = port
        self.base_url = build_base_url(address, port)

    async def get_status(self) -> SensorSnapshot:
        return await fetch_status(self.base_url)

    async def get_last_watering_event(self) -> WateringEvent | None:
        return await fetch_last_watering_event(self.base_url)

    async def water(self) -> None:
        await send_water_command(self.base_url)

    async def get_watering_events(self) -> list[WateringEvent]:
        return await fetch_watering_events(self.base_url)

    async def get_climate_history(self) -> list[ClimateReading]:
        return await fetch_climate_history(self.base_url)

    async def get_preferences(self) -> Preferences:
        return await fetch_preferences(self.base_url)

    async def save_preferences(self, preferences: Preferences) -> None:
        await save_preferences(self.base_url, preferences)
