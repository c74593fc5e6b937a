"""Error taxonomy shared by the resolver, its collaborators and the form."""
from __future__ import annotations


class LocationPickerError(Exception):
    """Base class for every failure the picker reports."""


class GeocodeError(LocationPickerError):
    """Raised by geocoding lookups."""


class GeocodeNotFound(GeocodeError):
    """A forward lookup produced no candidates."""


class GeocodeUnavailable(GeocodeError):
    """The geocoding service could not be reached or answered with an error."""


class GeolocationError(LocationPickerError):
    """Raised when the device position could not be obtained."""


class GeolocationDenied(GeolocationError):
    """The position request was refused."""


class GeolocationUnavailable(GeolocationError):
    """The position service could not be reached or answered with an error."""


class GeolocationTimeout(GeolocationError):
    """No position fix arrived within the allowed time."""


class GeolocationUnsupported(GeolocationError):
    """No position provider is available on this device."""


class InvalidSelection(LocationPickerError):
    """The consuming form was submitted without a selected location."""
