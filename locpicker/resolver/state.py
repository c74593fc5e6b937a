"""Resolver state and the sequence rules that guard every mutation of it."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from locpicker.models.location import Location
from locpicker.resolver.requests import GEOLOCATE, SEARCH, ResolutionRequest


@dataclass
class BusyFlags:
    searching: bool = False
    locating: bool = False


_BUSY_CHANNELS = {SEARCH: "searching", GEOLOCATE: "locating"}


@dataclass
class ResolverState:
    """Owned by a single `LocationResolver`; never handed to other components.

    ``issued`` holds the per-channel high-water mark of issued sequence
    numbers and ``last_applied_sequence`` the request whose result is
    currently held in ``current``.
    """

    current: Optional[Location] = None
    last_applied_sequence: int = 0
    pending_search_text: str = ""
    busy: BusyFlags = field(default_factory=BusyFlags)
    issued: Dict[str, int] = field(default_factory=dict)
    counter: int = 0
    closed: bool = False

    def stamp(self, kind: str) -> int:
        """Assign the next sequence number to a request on ``kind``."""
        self.counter += 1
        self.issued[kind] = self.counter
        return self.counter

    def is_latest(self, request: ResolutionRequest) -> bool:
        """True when no newer request was issued on the same channel."""
        return not self.closed and self.issued.get(request.kind) == request.sequence

    def is_newest(self, request: ResolutionRequest) -> bool:
        """True when no request on any channel was issued after ``request``."""
        return not self.closed and request.sequence == self.counter

    def accepts_result(self, request: ResolutionRequest) -> bool:
        """Latest on its channel and newer than whatever is applied."""
        return self.is_latest(request) and request.sequence > self.last_applied_sequence

    def accepts_label(self, request: ResolutionRequest) -> bool:
        """True while ``current`` still holds the coordinate ``request`` produced."""
        return not self.closed and self.current is not None and request.sequence == self.last_applied_sequence

    def apply(self, location: Location, sequence: int) -> None:
        self.current = location
        self.last_applied_sequence = sequence

    def relabel(self, label: Optional[str]) -> Location:
        if self.current is None:
            raise RuntimeError("cannot label an empty selection")
        self.current = self.current.with_label(label)
        return self.current

    def set_busy(self, kind: str, value: bool) -> None:
        setattr(self.busy, _BUSY_CHANNELS[kind], value)

    def close(self) -> None:
        self.closed = True
        self.busy = BusyFlags()
