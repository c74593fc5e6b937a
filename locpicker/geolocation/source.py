"""One-shot device position requests with a bounded wait."""
from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from locpicker.errors import GeolocationTimeout, GeolocationUnsupported
from locpicker.geolocation.providers import PositionProvider
from locpicker.models.location import Location
from locpicker.observability.metrics import MetricsRegistry
from locpicker.observability.tracing import span

LOGGER = structlog.get_logger(__name__)


class GeolocationSource:
    """Wraps a `PositionProvider` with the timeout and accuracy hint."""

    def __init__(
        self,
        provider: Optional[PositionProvider],
        *,
        maximum_age_ms: int = 0,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._provider = provider
        self._maximum_age_ms = maximum_age_ms
        self._metrics = metrics or MetricsRegistry()

    @property
    def supported(self) -> bool:
        return self._provider is not None

    async def get_current_position(self, timeout_ms: int = 5000, high_accuracy: bool = True) -> Location:
        if self._provider is None:
            raise GeolocationUnsupported("Geolocation is not supported on this device")
        self._metrics.incr("geolocation_requests")
        request = self._provider.request_position(high_accuracy=high_accuracy, maximum_age_ms=self._maximum_age_ms)
        try:
            with span(name="geolocate", timeout_ms=timeout_ms):
                coordinate = await asyncio.wait_for(request, timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError as exc:
            LOGGER.info("geolocation_timeout", timeout_ms=timeout_ms)
            raise GeolocationTimeout(f"no position fix within {timeout_ms} ms") from exc
        return Location.at(coordinate)
