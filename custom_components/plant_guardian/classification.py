"""
Derived status bands for a SensorSnapshot.

Pure functions only: the classification is recomputed every time an entity
asks for it and is never stored.
"""
from __future__ import annotations

import dataclasses
from enum import Enum

from .const import (
    HUMIDITY_DRY_BELOW,
    HUMIDITY_WET_ABOVE,
    MOISTURE_DRY_BELOW,
    MOISTURE_WET_FROM,
    TEMPERATURE_COLD_BELOW,
    TEMPERATURE_HOT_ABOVE,
)
from .models import SensorSnapshot


class MoistureStatus(str, Enum):
    DRY = "dry"
    MOIST = "moist"
    WET = "wet"


class TemperatureStatus(str, Enum):
    TOO_COLD = "too_cold"
    NORMAL = "normal"
    TOO_HOT = "too_hot"


class HumidityStatus(str, Enum):
    DRY = "dry"
    NORMAL = "normal"
    WET = "wet"


@dataclasses.dataclass(frozen=True)
class DerivedStatus:
    moisture: MoistureStatus | None = None
    temperature: TemperatureStatus | None = None
    humidity: HumidityStatus | None = None


def classify_moisture(value: float | None) -> MoistureStatus | None:
    if value is None:
        return None
    if value < MOISTURE_DRY_BELOW:
        return MoistureStatus.DRY
    if value < MOISTURE_WET_FROM:
        return MoistureStatus.MOIST
    return MoistureStatus.WET


def classify_temperature(value: float | None) -> TemperatureStatus | None:
    if value is None:
        return None
    if value < TEMPERATURE_COLD_BELOW:
        return TemperatureStatus.TOO_COLD
    if value > TEMPERATURE_HOT_ABOVE:
        return TemperatureStatus.TOO_HOT
    return TemperatureStatus.NORMAL


def classify_humidity(value: float | None) -> HumidityStatus | None:
    if value is None:
        return None
    if value < HUMIDITY_DRY_BELOW:
        return HumidityStatus.DRY
    if value > HUMIDITY_WET_ABOVE:
        return HumidityStatus.WET
    return HumidityStatus.NORMAL


def derive_status(snapshot: SensorSnapshot | None) -> DerivedStatus:
    """Classify every reading of the snapshot; unknown readings stay None."""
    if snapshot is None:
        return DerivedStatus()
    return DerivedStatus(
        moisture=classify_moisture(snapshot.soil_moisture),
        temperature=classify_temperature(snapshot.temperature),
        humidity=classify_humidity(snapshot.humidity),
    )
