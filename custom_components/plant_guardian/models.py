"""
Domain models for the Plant Guardian integration.

This module contains immutable data classes for everything the device reports
plus the parsers that turn raw JSON payloads into them. Parsers raise
ParseError for payloads that do not have the expected shape.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any

import homeassistant.helpers.config_validation as cv
import voluptuous as vol
from homeassistant.util import dt as dt_util

from .errors import ParseError

_LOGGER = logging.getLogger(__name__)

# The device firmware has shipped both spellings
_KEY_ALIASES = {
    "createdAt": "created_at",
    "soilMoistureBefore": "soil_moisture_before",
    "soilMoistureAfter": "soil_moisture_after",
    "notificationsEnabled": "notifications_enabled",
    "wateringThreshold": "watering_threshold",
    "temperatureAlerts": "temperature_alerts",
}

_NUMBER = vol.Any(int, float)
_OPTIONAL_FLOAT = vol.Any(None, vol.Coerce(float))
_TIMESTAMP = vol.Any(None, str, int, float)
_REQUIRED_TIMESTAMP = vol.Any(vol.All(str, vol.Length(min=1)), _NUMBER)

STATUS_SCHEMA = vol.Schema(
    {
        vol.Optional("soilMoistureRaw"): vol.Any(str, _NUMBER),
        vol.Optional("soilMoisture"): vol.Any(str, _NUMBER),
        vol.Optional("soilStatus"): vol.Any(None, str),
        vol.Optional("temperature"): _OPTIONAL_FLOAT,
        vol.Optional("humidity"): _OPTIONAL_FLOAT,
        vol.Optional("lastWatered"): _TIMESTAMP,
    },
    extra=vol.ALLOW_EXTRA,
)

WATERING_EVENT_SCHEMA = vol.Schema(
    {
        vol.Required("id"): vol.Any(int, str),
        vol.Required("created_at"): _REQUIRED_TIMESTAMP,
        vol.Required("soil_moisture_before"): vol.Coerce(float),
        vol.Required("soil_moisture_after"): vol.Coerce(float),
    },
    extra=vol.ALLOW_EXTRA,
)

CLIMATE_READING_SCHEMA = vol.Schema(
    {
        vol.Optional("id"): vol.Any(None, int, str),
        vol.Required("created_at"): _REQUIRED_TIMESTAMP,
        vol.Required("temperature"): vol.Coerce(float),
        vol.Required("humidity"): vol.Coerce(float),
    },
    extra=vol.ALLOW_EXTRA,
)

PREFERENCES_SCHEMA = vol.Schema(
    {
        vol.Required("notifications_enabled"): cv.boolean,
        vol.Required("watering_threshold"): vol.All(vol.Coerce(int), vol.Range(min=0, max=100)),
        vol.Required("temperature_alerts"): cv.boolean,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclasses.dataclass(frozen=True)
class SensorSnapshot:
    """One complete set of readings. Replaced as a whole on every successful read."""

    soil_moisture_raw: str
    temperature: float | None = None
    humidity: float | None = None
    last_watered_at: datetime | None = None
    # Classification computed by the device itself, when it sends one
    soil_status: str | None = None

    @property
    def soil_moisture(self) -> float | None:
        """Moisture percentage, or None when the device sent something non-numeric."""
        try:
            return float(self.soil_moisture_raw)
        except (TypeError, ValueError):
            return None


@dataclasses.dataclass(frozen=True)
class WateringEvent:
    """A single watering occurrence from the device's event log."""

    id: int | str
    created_at: datetime
    soil_moisture_before: float
    soil_moisture_after: float

    def metrics(self) -> dict[str, float]:
        return {"before": self.soil_moisture_before, "after": self.soil_moisture_after}


@dataclasses.dataclass(frozen=True)
class ClimateReading:
    """An entry of the alternate /history log (temperature and humidity samples)."""

    created_at: datetime
    temperature: float
    humidity: float
    id: int | str | None = None

    def metrics(self) -> dict[str, float]:
        return {"temperature": self.temperature, "humidity": self.humidity}


@dataclasses.dataclass(frozen=True)
class HistoryStats:
    """Summary of a full event log, recomputed from scratch on every load."""

    total_count: int = 0
    last_week_count: int = 0
    # metric name → mean over all events (missing when the log is empty)
    averages: dict[str, float] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ChartSeries:
    """Chart data in ascending time order; every dataset has one value per label."""

    labels: list[str] = dataclasses.field(default_factory=list)
    datasets: dict[str, list[float]] = dataclasses.field(default_factory=dict)

    @property
    def before(self) -> list[float]:
        return self.datasets.get("before", [])

    @property
    def after(self) -> list[float]:
        return self.datasets.get("after", [])

    @property
    def is_empty(self) -> bool:
        return not self.labels


@dataclasses.dataclass(frozen=True)
class Page:
    """A view over an event collection."""

    items: list = dataclasses.field(default_factory=list)
    page_index: int = 1
    page_size: int = 10
    total_pages: int = 0


@dataclasses.dataclass(frozen=True)
class Preferences:
    """User preferences stored on the device."""

    notifications_enabled: bool = True
    watering_threshold: int = 30
    temperature_alerts: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "notifications_enabled": self.notifications_enabled,
            "watering_threshold": self.watering_threshold,
            "temperature_alerts": self.temperature_alerts,
        }


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def _normalize_keys(payload: dict) -> dict:
    return {_KEY_ALIASES.get(key, key): value for key, value in payload.items()}


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a device timestamp into an aware UTC datetime.

    Numbers (and numeric strings) are epoch milliseconds, other strings are ISO 8601.
    Raises ParseError for strings that are neither and for epochs outside the
    range a datetime can hold.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return dt_util.as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_epoch_ms(value)
    if isinstance(value, str):
        if value.isdigit():
            return _from_epoch_ms(value)
        parsed = dt_util.parse_datetime(value)
        if parsed is not None:
            return dt_util.as_utc(parsed)
    raise ParseError(f"Unrecognised timestamp: {value!r}")


def _from_epoch_ms(value: int | float | str) -> datetime:
    try:
        return dt_util.utc_from_timestamp(float(value) / 1000)
    except (OverflowError, OSError, ValueError) as err:
        raise ParseError(f"Timestamp out of range: {value!r}") from err


def _parse_required_timestamp(value: Any) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ParseError("Entry carries no timestamp")
    return parsed


def parse_status(payload: Any) -> SensorSnapshot:
    """Build a SensorSnapshot from a /status response or a bare push message."""
    if not isinstance(payload, dict):
        raise ParseError(f"Status payload is not an object: {payload!r}")
    try:
        data = STATUS_SCHEMA(payload)
    except vol.Invalid as err:
        raise ParseError(f"Invalid status payload: {err}") from err

    raw = data.get("soilMoistureRaw", data.get("soilMoisture"))
    if raw is None:
        raise ParseError("Status payload carries no soil moisture value")

    return SensorSnapshot(
        soil_moisture_raw=str(raw),
        temperature=data.get("temperature"),
        humidity=data.get("humidity"),
        last_watered_at=parse_timestamp(data.get("lastWatered")),
        soil_status=data.get("soilStatus"),
    )


def parse_watering_event(payload: Any) -> WateringEvent:
    if not isinstance(payload, dict):
        raise ParseError(f"Watering event is not an object: {payload!r}")
    try:
        data = WATERING_EVENT_SCHEMA(_normalize_keys(payload))
    except vol.Invalid as err:
        raise ParseError(f"Invalid watering event: {err}") from err
    return WateringEvent(
        id=data["id"],
        created_at=_parse_required_timestamp(data["created_at"]),
        soil_moisture_before=data["soil_moisture_before"],
        soil_moisture_after=data["soil_moisture_after"],
    )


def parse_climate_reading(payload: Any) -> ClimateReading:
    if not isinstance(payload, dict):
        raise ParseError(f"Climate reading is not an object: {payload!r}")
    try:
        data = CLIMATE_READING_SCHEMA(_normalize_keys(payload))
    except vol.Invalid as err:
        raise ParseError(f"Invalid climate reading: {err}") from err
    return ClimateReading(
        created_at=_parse_required_timestamp(data["created_at"]),
        temperature=data["temperature"],
        humidity=data["humidity"],
        id=data.get("id"),
    )


def parse_preferences(payload: Any) -> Preferences:
    if not isinstance(payload, dict):
        raise ParseError(f"Settings payload is not an object: {payload!r}")
    try:
        data = PREFERENCES_SCHEMA(_normalize_keys(payload))
    except vol.Invalid as err:
        raise ParseError(f"Invalid settings payload: {err}") from err
    return Preferences(**data)
