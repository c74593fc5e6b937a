"""Test doubles whose calls stay pending until the test settles them."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from locpicker.models.location import Coordinate, Location


@dataclass
class PendingCall:
    argument: Any
    future: asyncio.Future = field(default_factory=lambda: asyncio.get_running_loop().create_future())

    def resolve(self, value: Any) -> None:
        self.future.set_result(value)

    def fail(self, exc: BaseException) -> None:
        self.future.set_exception(exc)


class ScriptedGeocoder:
    """Geocoder double; ``auto_reverse`` answers reverse lookups immediately."""

    def __init__(self, *, auto_reverse: Optional[Callable[[Coordinate], Location]] = None) -> None:
        self.forward_calls: List[PendingCall] = []
        self.reverse_calls: List[PendingCall] = []
        self._auto_reverse = auto_reverse

    async def forward_lookup(self, query: str) -> List[Location]:
        call = PendingCall(query)
        self.forward_calls.append(call)
        return await call.future

    async def reverse_lookup(self, coordinate: Coordinate) -> Location:
        if self._auto_reverse is not None:
            return self._auto_reverse(coordinate)
        call = PendingCall(coordinate)
        self.reverse_calls.append(call)
        return await call.future


def no_address(coordinate: Coordinate) -> Location:
    return Location.at(coordinate)


class ScriptedPositionProvider:
    def __init__(self) -> None:
        self.calls: List[PendingCall] = []

    async def request_position(self, *, high_accuracy: bool, maximum_age_ms: int) -> Coordinate:
        call = PendingCall({"high_accuracy": high_accuracy, "maximum_age_ms": maximum_age_ms})
        self.calls.append(call)
        return await call.future


class HangingPositionProvider:
    """Never produces a fix."""

    async def request_position(self, *, high_accuracy: bool, maximum_age_ms: int) -> Coordinate:
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


async def spin(turns: int = 5) -> None:
    """Let freshly created tasks run up to their first suspension point."""
    for _ in range(turns):
        await asyncio.sleep(0)
