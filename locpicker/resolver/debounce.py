"""Trailing-edge debounce on the running event loop."""
from __future__ import annotations

import asyncio
from typing import Callable, Optional


class Debouncer:
    """Run ``callback`` once input has been quiet for ``delay`` seconds.

    Every ``trigger`` cancels the pending timer and starts a new one.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self._delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
