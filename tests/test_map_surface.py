import pytest

from locpicker.map.surface import HeadlessMapSurface
from locpicker.models.location import Coordinate


def test_commands_require_initialised_surface():
    surface = HeadlessMapSurface()
    with pytest.raises(RuntimeError):
        surface.set_marker(Coordinate(0.0, 0.0))

    surface.initialize("container", Coordinate(1.0, 1.0), 13)
    surface.set_marker(Coordinate(2.0, 2.0))
    surface.fly_to(Coordinate(2.0, 2.0))
    assert surface.zoom == 13
    surface.destroy()

    assert surface.destroyed
    assert surface.marker is None
    with pytest.raises(RuntimeError):
        surface.fly_to(Coordinate(3.0, 3.0), 15)
    assert [command.name for command in surface.commands] == ["initialize", "set_marker", "fly_to", "destroy"]


def test_click_events_reach_subscribers_with_wrapped_longitude():
    surface = HeadlessMapSurface()
    clicks = []
    surface.on_click(clicks.append)
    surface.initialize(None, Coordinate(0.0, 0.0), 3)
    surface.click(10.0, 370.0)
    assert clicks == [Coordinate(10.0, 10.0)]
