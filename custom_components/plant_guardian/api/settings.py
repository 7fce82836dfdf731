"""
Low-level preferences round trip.
"""
import logging

from custom_components.plant_guardian.errors import FetchError, ParseError, SaveError
from custom_components.plant_guardian.models import Preferences, parse_preferences
from custom_components.plant_guardian.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_preferences(base_url: str) -> Preferences:
    """
    Corresponding CURL command:
    curl -X 'GET' 'http://DEVICE/settings'
    """
    raw_json = await make_request("GET", base_url + "/settings")
    try:
        return parse_preferences(raw_json)
    except ParseError as e:
        raise FetchError(f"Malformed settings response: {e}") from e


async def save_preferences(base_url: str, preferences: Preferences) -> None:
    """
    Transmit the full preferences record. Raises SaveError on failure.

    Corresponding CURL command:
    curl -X 'POST' 'http://DEVICE/settings' -H 'Content-Type: application/json' -d '{...}'
    """
    try:
        await make_request(
            "POST", base_url + "/settings", payload=preferences.to_payload(), expect_json=False
        )
    except FetchError as e:
        _LOGGER.error("Saving settings failed: %s", e)
        raise SaveError(f"Error saving settings: {e}") from e
