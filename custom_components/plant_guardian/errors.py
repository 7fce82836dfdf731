"""Exceptions raised by the Plant Guardian integration."""


class PlantGuardianError(Exception):
    """Base class for all Plant Guardian errors."""


class AddressValidationError(PlantGuardianError, ValueError):
    """The candidate device address is not a usable IPv4 address."""

    translation_key = "invalid_address"


class AddressShapeError(AddressValidationError):
    """The address is not four dot-separated numbers."""

    translation_key = "invalid_address_shape"


class AddressRangeError(AddressValidationError):
    """One of the octets is outside 0-255."""

    translation_key = "address_octet_out_of_range"


class FetchError(PlantGuardianError):
    """Reading data from the device failed."""


class DeviceConnectionError(FetchError):
    """The device could not be reached (timeout, refused, DNS, socket closed)."""


class DeviceResponseError(FetchError):
    """The device answered, but not with a usable 2xx JSON response."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        super().__init__(message)


class CommandError(PlantGuardianError):
    """The watering command could not be delivered."""


class ParseError(PlantGuardianError):
    """A payload from the device does not have the expected shape."""


class SaveError(PlantGuardianError):
    """Writing preferences to the device failed."""
