import pytest

from locpicker.errors import InvalidSelection
from locpicker.form.location_field import LocationField
from locpicker.models.location import Location


def test_commit_without_selection_is_invalid():
    field = LocationField()
    with pytest.raises(InvalidSelection, match="select a location"):
        field.commit()


def test_payload_uses_latest_snapshot():
    field = LocationField()
    field.on_location_selected(Location(10.5, 20.5))
    assert field.to_payload() == {"latitude": 10.5, "longitude": 20.5}

    field.on_location_selected(Location(10.5, 20.5, "Pier 4"))
    assert field.to_payload() == {"latitude": 10.5, "longitude": 20.5, "address": "Pier 4"}
