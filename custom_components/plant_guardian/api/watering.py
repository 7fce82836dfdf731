"""
Low-level watering command.
"""
import logging

from custom_components.plant_guardian.errors import CommandError, FetchError
from custom_components.plant_guardian.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def send_water_command(base_url: str) -> None:
    """
    Ask the device to water the plant now.

    Sent exactly once: a retried POST could water the plant twice.
    Any response body is ignored. Raises CommandError on failure.

    Corresponding CURL command:
    curl -X 'POST' 'http://DEVICE/water'
    """
    try:
        await make_request("POST", base_url + "/water", max_attempts=1, expect_json=False)
    except FetchError as e:
        _LOGGER.error("Watering command failed: %s", e)
        raise CommandError(f"Error watering plant: {e}") from e
