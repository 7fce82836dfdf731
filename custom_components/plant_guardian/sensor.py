"""
Platform for plant sensor integration.
This module is responsible for setting up the reading, status and history sensor entities
and updating their state based on the data received from the plant device.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import PERCENTAGE, EntityCategory, UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo

from .classification import HumidityStatus, MoistureStatus, TemperatureStatus
from .coordinator import PlantGuardianCoordinator, SyncState
from .entity import PlantGuardianEntity
from .errors import FetchError
from .history import HistoryAggregator

_LOGGER = logging.getLogger(__name__)
SCAN_INTERVAL = timedelta(minutes=5)


def _clamp(value: float | None, low: float, high: float) -> float | None:
    if value is None:
        return None
    return max(low, min(high, value))


class PlantReadingSensor(PlantGuardianEntity, SensorEntity):
    """Base for entities reading the current snapshot."""

    _attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def available(self) -> bool:
        # The last good snapshot stays visible while the device is failing
        return self.coordinator.data is not None and self.coordinator.data.snapshot is not None


class PlantMoistureSensor(PlantReadingSensor):
    _attr_device_class = SensorDeviceClass.MOISTURE
    _attr_native_unit_of_measurement = PERCENTAGE

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "soil_moisture", "Soil Moisture", "mdi:water")

    @property
    def native_value(self) -> float | None:
        return _clamp(self.coordinator.data.snapshot.soil_moisture, 0.0, 100.0)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.coordinator.data.snapshot
        return {"raw_value": snapshot.soil_moisture_raw, "device_status": snapshot.soil_status}


class PlantTemperatureSensor(PlantReadingSensor):
    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_native_unit_of_measurement = UnitOfTemperature.CELSIUS

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "temperature", "Temperature", "mdi:thermometer")

    @property
    def native_value(self) -> float | None:
        return self.coordinator.data.snapshot.temperature


class PlantHumiditySensor(PlantReadingSensor):
    _attr_device_class = SensorDeviceClass.HUMIDITY
    _attr_native_unit_of_measurement = PERCENTAGE

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "humidity", "Humidity", "mdi:water-percent")

    @property
    def native_value(self) -> float | None:
        return _clamp(self.coordinator.data.snapshot.humidity, 0.0, 100.0)


class PlantStatusSensor(PlantReadingSensor):
    """Enum sensor exposing one band of the derived status."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_state_class = None

    def __init__(self, coordinator: PlantGuardianCoordinator, field: str, name: str, options: type, icon: str) -> None:
        super().__init__(coordinator, f"{field}_status", name, icon)
        self._field = field
        self._attr_options = [option.value for option in options]

    @property
    def native_value(self) -> str | None:
        band = getattr(self.coordinator.data.status, self._field)
        return band.value if band is not None else None


class PlantLastWateredSensor(PlantGuardianEntity, SensorEntity):
    _attr_device_class = SensorDeviceClass.TIMESTAMP

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "last_watered", "Last Watered", "mdi:clock-outline")

    @property
    def available(self) -> bool:
        return True

    @property
    def native_value(self) -> datetime | None:
        return self.coordinator.data.last_watered_at


class PlantConnectionSensor(PlantGuardianEntity, SensorEntity):
    """Synchronizer state plus the user-visible error message."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_entity_category = EntityCategory.DIAGNOSTIC
    _attr_options = [state.value for state in SyncState]

    def __init__(self, coordinator: PlantGuardianCoordinator) -> None:
        super().__init__(coordinator, "connection", "Connection", "mdi:lan-connect")

    @property
    def available(self) -> bool:
        return True

    @property
    def native_value(self) -> str:
        return self.coordinator.state.value

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {"error": self.coordinator.error, "transport": self.coordinator.source.name}


class PlantHistorySensor(SensorEntity):
    """
    Base for sensors over the history aggregator.
    Polls on SCAN_INTERVAL; the aggregator serves repeated loads from memory.
    """

    _history: HistoryAggregator = None

    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator, key: str, name: str) -> None:
        self._coordinator = coordinator
        self._history = history
        self._attr_unique_id = f"plant_guardian_{coordinator.api.address}_{key}"
        self._attr_name = f"Plant {name}"
        self._attr_icon = "mdi:history"

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(self._history.async_add_listener(self.async_write_ha_state))

    async def async_update(self) -> None:
        """Load the history; on failure the previous values stay and the error is exposed."""
        try:
            await self._history.async_load_history()
        except FetchError as e:
            _LOGGER.debug("History sensor keeps previous values: %s", e)

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._coordinator.get_device_info()

    @property
    def should_poll(self) -> bool:
        return True


class PlantWateringEventsSensor(PlantHistorySensor):
    """Total number of logged events; stats, chart series and current page as attributes."""

    _attr_state_class = SensorStateClass.TOTAL

    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator) -> None:
        super().__init__(coordinator, history, "history_events", "History Events")

    @property
    def native_value(self) -> int:
        return self._history.stats.total_count

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        stats = self._history.stats
        series = self._history.series
        page = self._history.pager.page
        return {
            "last_week_count": stats.last_week_count,
            "averages": {key: round(value, 1) for key, value in stats.averages.items()},
            "chart_labels": series.labels,
            "chart_datasets": series.datasets,
            "page_index": page.page_index,
            "page_size": page.page_size,
            "total_pages": page.total_pages,
            "page_items": [_serialize_event(event) for event in page.items],
            "error": self._history.error,
        }


class PlantLastWeekSensor(PlantHistorySensor):
    def __init__(self, coordinator: PlantGuardianCoordinator, history: HistoryAggregator) -> None:
        super().__init__(coordinator, history, "history_last_week", "History Last 7 Days")

    @property
    def native_value(self) -> int:
        return self._history.stats.last_week_count


def _serialize_event(event) -> dict[str, Any]:
    return {"id": event.id, "created_at": event.created_at.isoformat(), **event.metrics()}


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    _LOGGER.debug("Starting sensor setup for Plant Guardian integration")
    runtime_data = config_entry.runtime_data
    coordinator = runtime_data.coordinator

    entities = [
        PlantMoistureSensor(coordinator),
        PlantTemperatureSensor(coordinator),
        PlantHumiditySensor(coordinator),
        PlantStatusSensor(coordinator, "moisture", "Moisture Status", MoistureStatus, "mdi:sprout"),
        PlantStatusSensor(coordinator, "temperature", "Temperature Status", TemperatureStatus, "mdi:thermometer-alert"),
        PlantStatusSensor(coordinator, "humidity", "Humidity Status", HumidityStatus, "mdi:water-alert"),
        PlantLastWateredSensor(coordinator),
        PlantConnectionSensor(coordinator),
    ]
    async_add_entities(entities)

    async_add_entities(
        [
            PlantWateringEventsSensor(coordinator, runtime_data.history),
            PlantLastWeekSensor(coordinator, runtime_data.history),
        ],
        update_before_add=True,
    )
