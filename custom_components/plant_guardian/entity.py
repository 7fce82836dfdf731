"""Base class shared by all Plant Guardian entities."""
from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import PlantGuardianCoordinator


class PlantGuardianEntity(CoordinatorEntity[PlantGuardianCoordinator]):
    """Entity attached to the plant device of one config entry."""

    def __init__(self, coordinator: PlantGuardianCoordinator, key: str, name: str, icon: str) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"plant_guardian_{coordinator.api.address}_{key}"
        self._attr_name = f"Plant {name}"
        self._attr_icon = icon

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()
