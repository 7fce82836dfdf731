"""
Low-level status reads from the plant device.

Responsible for:
- Fetching the current sensor readings (/status)
- Fetching the most recent watering event (/watering-events/last)
"""
import logging

from custom_components.plant_guardian.errors import FetchError, ParseError
from custom_components.plant_guardian.models import (
    SensorSnapshot,
    WateringEvent,
    parse_status,
    parse_watering_event,
)
from custom_components.plant_guardian.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_status(base_url: str) -> SensorSnapshot:
    """
    Fetch the current readings and return them as a new snapshot.

    Raises FetchError when the device is unreachable or the payload is malformed.

    Corresponding CURL command:
    curl -X 'GET' 'http://DEVICE/status'
    """
    raw_json = await make_request("GET", base_url + "/status")
    try:
        return parse_status(raw_json)
    except ParseError as e:
        raise FetchError(f"Malformed status response: {e}") from e


async def fetch_last_watering_event(base_url: str) -> WateringEvent | None:
    """
    Fetch the latest watering event, or None when the device has none yet.

    Corresponding CURL command:
    curl -X 'GET' 'http://DEVICE/watering-events/last'
    """
    raw_json = await make_request("GET", base_url + "/watering-events/last")
    if not raw_json:
        return None
    try:
        return parse_watering_event(raw_json)
    except ParseError as e:
        raise FetchError(f"Malformed watering event: {e}") from e
