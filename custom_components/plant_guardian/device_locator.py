"""
Resolution and persistence of the monitored device's network address.

The address lives in the config entry (key CONF_ADDRESS). DeviceLocator is the
only code path that writes it; every other component reads it once when the
entry is set up. Writing it updates the entry, which fires the entry's update
listener and reloads the integration against the new address.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.core import HomeAssistant

from .const import CONF_ADDRESS
from .errors import AddressRangeError, AddressShapeError

_LOGGER = logging.getLogger(__name__)


def validate_address(candidate: str) -> str:
    """
    Validate a dotted IPv4 address and return its canonical form.

    Raises AddressShapeError unless the input is exactly four dot-separated
    groups of one to three digits, and AddressRangeError when a group is
    above 255.
    """
    if not isinstance(candidate, str):
        raise AddressShapeError("Please enter a valid IP address (e.g., 192.168.1.100)")

    parts = candidate.strip().split(".")
    if len(parts) != 4:
        raise AddressShapeError("Please enter a valid IP address (e.g., 192.168.1.100)")

    octets = []
    for part in parts:
        # isdigit() accepts non-ASCII digits, so check the characters explicitly
        if not part or len(part) > 3 or not all("0" <= ch <= "9" for ch in part):
            raise AddressShapeError("Please enter a valid IP address (e.g., 192.168.1.100)")
        octets.append(int(part))

    for octet in octets:
        if octet > 255:
            raise AddressRangeError("Each number in the IP address must be between 0 and 255")

    return ".".join(str(octet) for octet in octets)


class DeviceLocator:
    """Reads and writes the device address stored in a config entry."""

    def __init__(self, hass: HomeAssistant, entry: config_entries.ConfigEntry) -> None:
        self._hass = hass
        self._entry = entry

    def get_address(self) -> str | None:
        """Return the persisted address, or None when none has been saved yet."""
        return self._entry.data.get(CONF_ADDRESS) or None

    def set_address(self, candidate: str) -> str:
        """
        Validate and persist a new address.

        Returns the canonical address. Raises AddressValidationError (shape or
        range) without touching the stored value.
        """
        address = validate_address(candidate)
        if address == self.get_address():
            return address

        _LOGGER.debug("Storing new device address %s", address)
        new_data = dict(self._entry.data)
        new_data[CONF_ADDRESS] = address
        self._hass.config_entries.async_update_entry(self._entry, data=new_data, title=address)
        return address
