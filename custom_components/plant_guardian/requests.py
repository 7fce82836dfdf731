"""
Low-level HTTP request library for talking to the plant device.
This module handles all HTTP requests with automatic retry logic and proper error handling.
"""
import asyncio
import logging
import aiohttp

from .const import AVAILABILITY_TIMEOUT, REQUEST_ATTEMPTS, REQUEST_TIMEOUT
from .errors import DeviceConnectionError, DeviceResponseError

_LOGGER = logging.getLogger(__name__)


def build_base_url(address: str, port: int | None = None) -> str:
    """Return http://<address>[:port], omitting the default HTTP port."""
    if port is None or port == 80:
        return f"http://{address}"
    return f"http://{address}:{port}"


async def check_device_availability(base_url: str, timeout: int = AVAILABILITY_TIMEOUT) -> bool:
    """
    Check if the device answers on /status.

    Args:
        base_url: Device base URL as returned by build_base_url
        timeout: Timeout in seconds for the probe

    Returns:
        True if the device responded with a 2xx status, False otherwise
    """
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.get(base_url + "/status") as response:
                if response.status >= 300:
                    _LOGGER.warning("Device is not reachable (status %s)", response.status)
                    return False
                return True

    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking device at %s", base_url)
        return False
    except aiohttp.ClientError as e:
        _LOGGER.warning("Error while checking device at %s: %s", base_url, e)
        return False


async def make_request(
    method: str,
    url: str,
    payload: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
    expect_json: bool = True,
):
    """
    Make an HTTP request with automatic retry on timeout.

    Args:
        method: HTTP method (GET or POST)
        url: Target URL for the request
        payload: JSON payload for POST requests (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of attempts; use 1 for non-idempotent commands
        expect_json: When False the body of a 2xx response is ignored and None returned

    Returns:
        Parsed JSON response, or None when expect_json is False

    Raises:
        DeviceConnectionError: If the device cannot be reached or all attempts time out
        DeviceResponseError: If the device answers with a non-2xx status or non-JSON body
    """
    method = method.upper()
    if method not in ("GET", "POST"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_attempts):
        try:
            # Timeout grows with each attempt
            timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.request(method, url, json=payload) as response:
                    return await _process_response(response, url, expect_json)

        except (asyncio.TimeoutError, TimeoutError) as e:
            if attempt < max_attempts - 1:
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                method, url, max_attempts
            )
            raise DeviceConnectionError(f"Timeout while contacting {url}") from e

        except aiohttp.ClientError as e:
            # Connection refused, unreachable host etc. are not retried
            raise DeviceConnectionError(f"Cannot reach {url}: {e}") from e

    return None


async def _process_response(response, url: str, expect_json: bool):
    """
    Process HTTP response and extract JSON data.

    Raises:
        DeviceResponseError: For non-2xx responses or unexpected content type
    """
    if response.status >= 300:
        text = await response.text()
        _LOGGER.warning(
            "Error response from %s: status %s, body preview: %s",
            url, response.status, text[:200]
        )
        raise DeviceResponseError(response.status, f"HTTP {response.status} from {url}")

    if not expect_json:
        return None

    try:
        # Small device web servers often omit the JSON content type
        return await response.json(content_type=None)
    except ValueError as e:
        text = await response.text()
        _LOGGER.warning(
            "Unparseable response from %s (status %s): %s",
            url, response.status, text[:200]
        )
        raise DeviceResponseError(response.status, f"Expected JSON from {url}") from e
