"""Immutable coordinate and location values."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Optional


def _check_range(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValueError(f"Coordinate must be finite: ({latitude}, {longitude})")
    if not -90.0 <= latitude <= 90.0:
        raise ValueError(f"Latitude out of range [-90, 90]: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise ValueError(f"Longitude out of range [-180, 180]: {longitude}")


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A geometrically valid latitude/longitude pair."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", float(self.latitude))
        object.__setattr__(self, "longitude", float(self.longitude))
        _check_range(self.latitude, self.longitude)

    @classmethod
    def from_map(cls, latitude: float, longitude: float) -> "Coordinate":
        """Build a coordinate from a map event, wrapping repeated-world longitudes."""
        lng = float(longitude)
        if math.isfinite(lng) and not -180.0 <= lng <= 180.0:
            lng = ((lng + 180.0) % 360.0) - 180.0
        return cls(latitude=latitude, longitude=lng)


@dataclass(frozen=True, slots=True)
class Location:
    """A selected point with an optional human-readable address."""

    latitude: float
    longitude: float
    label: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", float(self.latitude))
        object.__setattr__(self, "longitude", float(self.longitude))
        _check_range(self.latitude, self.longitude)
        if self.label is not None and not self.label.strip():
            object.__setattr__(self, "label", None)

    @classmethod
    def at(cls, coordinate: Coordinate, label: Optional[str] = None) -> "Location":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude, label=label)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def with_label(self, label: Optional[str]) -> "Location":
        """Return a copy carrying ``label``; the coordinate is unchanged."""
        return replace(self, label=label)

    def describe(self) -> str:
        """Return the label, or a coordinate description when none is known."""
        if self.label:
            return self.label
        return f"Latitude: {self.latitude:.6f}, Longitude: {self.longitude:.6f}"

    def to_dict(self) -> Dict[str, object]:
        return {"latitude": self.latitude, "longitude": self.longitude, "label": self.label}
