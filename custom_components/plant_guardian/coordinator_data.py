"""
CoordinatorData — immutable snapshot of the device state shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime

from .classification import DerivedStatus, derive_status
from .models import SensorSnapshot, WateringEvent


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write view of the device.

    Always replace via dataclasses.replace(), never mutate in place.
    """

    # Latest accepted readings; None until the first successful read
    snapshot: SensorSnapshot | None = None

    # Newest entry of the watering log, read on first refresh and on full refreshes
    last_event: WateringEvent | None = None

    # Client-side time of the last successful water command; cleared as soon
    # as the device reports its own lastWatered value
    optimistic_watered_at: datetime | None = None

    @property
    def last_watered_at(self) -> datetime | None:
        if self.snapshot is not None and self.snapshot.last_watered_at is not None:
            return self.snapshot.last_watered_at
        if self.optimistic_watered_at is not None:
            return self.optimistic_watered_at
        if self.last_event is not None:
            return self.last_event.created_at
        return None

    @property
    def status(self) -> DerivedStatus:
        return derive_status(self.snapshot)
