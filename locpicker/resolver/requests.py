"""Resolution requests, one variant per input channel."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from locpicker.models.location import Coordinate

MAP_CLICK = "map-click"
SEARCH = "search"
GEOLOCATE = "geolocate"


@dataclass(frozen=True, slots=True)
class ResolutionRequest:
    """Base for requests; ``sequence`` is stamped when the request is issued."""

    kind: ClassVar[str]
    sequence: int


@dataclass(frozen=True, slots=True)
class MapClickRequest(ResolutionRequest):
    kind: ClassVar[str] = MAP_CLICK
    coordinate: Coordinate


@dataclass(frozen=True, slots=True)
class SearchRequest(ResolutionRequest):
    kind: ClassVar[str] = SEARCH
    query: str


@dataclass(frozen=True, slots=True)
class GeolocateRequest(ResolutionRequest):
    kind: ClassVar[str] = GEOLOCATE
