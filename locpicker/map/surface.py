"""Command/event contract for the map renderer and an in-memory implementation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple

from locpicker.models.location import Coordinate

ClickHandler = Callable[[Coordinate], None]


class MapSurface(Protocol):
    def initialize(self, container: Any, initial_center: Coordinate, initial_zoom: float) -> None: ...

    def set_marker(self, coordinate: Coordinate) -> None: ...

    def remove_marker(self) -> None: ...

    def fly_to(self, coordinate: Coordinate, zoom: Optional[float] = None) -> None: ...

    def destroy(self) -> None: ...

    def on_click(self, handler: ClickHandler) -> None: ...


@dataclass(frozen=True, slots=True)
class MapCommand:
    """One command received by a `HeadlessMapSurface`, kept for inspection."""

    name: str
    args: Tuple[Any, ...] = ()


class HeadlessMapSurface:
    """Map surface without a renderer: tracks viewport and marker state.

    Drives the picker from the command line and in tests. Commands issued
    before ``initialize`` or after ``destroy`` raise ``RuntimeError``.
    """

    def __init__(self) -> None:
        self.container: Any = None
        self.center: Optional[Coordinate] = None
        self.zoom: Optional[float] = None
        self.marker: Optional[Coordinate] = None
        self.commands: List[MapCommand] = []
        self._handlers: List[ClickHandler] = []
        self._state = "new"

    @property
    def initialized(self) -> bool:
        return self._state == "ready"

    @property
    def destroyed(self) -> bool:
        return self._state == "destroyed"

    def _require_ready(self, command: str) -> None:
        if self._state != "ready":
            raise RuntimeError(f"map surface is {self._state}; cannot {command}")

    def initialize(self, container: Any, initial_center: Coordinate, initial_zoom: float) -> None:
        if self._state != "new":
            raise RuntimeError("map surface already initialised")
        self.container = container
        self.center = initial_center
        self.zoom = initial_zoom
        self._state = "ready"
        self.commands.append(MapCommand("initialize", (initial_center, initial_zoom)))

    def set_marker(self, coordinate: Coordinate) -> None:
        self._require_ready("set marker")
        self.marker = coordinate
        self.commands.append(MapCommand("set_marker", (coordinate,)))

    def remove_marker(self) -> None:
        self._require_ready("remove marker")
        self.marker = None
        self.commands.append(MapCommand("remove_marker"))

    def fly_to(self, coordinate: Coordinate, zoom: Optional[float] = None) -> None:
        self._require_ready("fly")
        self.center = coordinate
        if zoom is not None:
            self.zoom = zoom
        self.commands.append(MapCommand("fly_to", (coordinate, zoom)))

    def destroy(self) -> None:
        if self._state == "destroyed":
            return
        self._state = "destroyed"
        self.marker = None
        self._handlers.clear()
        self.commands.append(MapCommand("destroy"))

    def on_click(self, handler: ClickHandler) -> None:
        self._handlers.append(handler)

    def click(self, latitude: float, longitude: float) -> None:
        """Emit a click event as a renderer would for a user tap."""
        self._require_ready("click")
        coordinate = Coordinate.from_map(latitude, longitude)
        for handler in list(self._handlers):
            handler(coordinate)
