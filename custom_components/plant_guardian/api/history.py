"""
Low-level event log reads.

Responsible for:
- Fetching the watering event log (/watering-events)
- Fetching the alternate climate history log (/history)
- Mapping the JSON entries onto model instances, skipping malformed ones
"""
import logging
from typing import Callable

from custom_components.plant_guardian.errors import FetchError, ParseError
from custom_components.plant_guardian.models import (
    ClimateReading,
    WateringEvent,
    parse_climate_reading,
    parse_watering_event,
)
from custom_components.plant_guardian.requests import make_request

_LOGGER = logging.getLogger(__name__)


def _parse_entries(raw_json, parser: Callable, url: str) -> list:
    if not isinstance(raw_json, list):
        raise FetchError(f"Expected a list from {url}, got {type(raw_json).__name__}")

    parsed = []
    for entry in raw_json:
        try:
            parsed.append(parser(entry))
        except ParseError as e:
            _LOGGER.warning("Skipping malformed entry from %s: %s", url, e)
    return parsed


async def fetch_watering_events(base_url: str) -> list[WateringEvent]:
    """
    Fetch the full watering log, in the order the device delivers it
    (newest first).

    Corresponding CURL command:
    curl -X 'GET' 'http://DEVICE/watering-events'
    """
    url = base_url + "/watering-events"
    raw_json = await make_request("GET", url)
    return _parse_entries(raw_json, parse_watering_event, url)


async def fetch_climate_history(base_url: str) -> list[ClimateReading]:
    """
    Fetch the temperature/humidity log.

    Corresponding CURL command:
    curl -X 'GET' 'http://DEVICE/history'
    """
    url = base_url + "/history"
    raw_json = await make_request("GET", url)
    return _parse_entries(raw_json, parse_climate_reading, url)
