"""The report form's location field: owns the committed selection."""
from __future__ import annotations

from typing import Dict, Optional

from locpicker.errors import InvalidSelection
from locpicker.models.location import Location


class LocationField:
    """Receives snapshots from the picker and validates them on submit."""

    def __init__(self) -> None:
        self._location: Optional[Location] = None

    @property
    def value(self) -> Optional[Location]:
        return self._location

    def on_location_selected(self, location: Location) -> None:
        """Callback handed to the resolver as ``on_location_selected``."""
        self._location = location

    def commit(self) -> Location:
        """Return the selection to submit, raising `InvalidSelection` when there is none."""
        if self._location is None:
            raise InvalidSelection("Please select a location on the map")
        return self._location

    def to_payload(self) -> Dict[str, object]:
        location = self.commit()
        payload: Dict[str, object] = {"latitude": location.latitude, "longitude": location.longitude}
        if location.label:
            payload["address"] = location.label
        return payload
