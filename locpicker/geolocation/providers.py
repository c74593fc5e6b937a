"""Position providers standing in for the platform device-position API."""
from __future__ import annotations

from typing import Optional, Protocol

import httpx
import structlog

from locpicker.errors import GeolocationDenied, GeolocationUnavailable
from locpicker.models.location import Coordinate
from locpicker.settings import GeolocationSettings

LOGGER = structlog.get_logger(__name__)


class PositionProvider(Protocol):
    async def request_position(self, *, high_accuracy: bool, maximum_age_ms: int) -> Coordinate: ...


class StaticPositionProvider:
    """Always reports the configured position."""

    def __init__(self, coordinate: Coordinate) -> None:
        self._coordinate = coordinate

    async def request_position(self, *, high_accuracy: bool, maximum_age_ms: int) -> Coordinate:
        return self._coordinate


class IpPositionProvider:
    """Approximate position from an IP geolocation endpoint.

    The accuracy hint cannot be honoured by this source and is only logged.
    """

    def __init__(self, client: httpx.AsyncClient, *, endpoint: str) -> None:
        self._client = client
        self._endpoint = endpoint

    async def request_position(self, *, high_accuracy: bool, maximum_age_ms: int) -> Coordinate:
        LOGGER.debug("ip_position_request", endpoint=self._endpoint, high_accuracy=high_accuracy)
        try:
            response = await self._client.get(self._endpoint)
        except httpx.HTTPError as exc:
            raise GeolocationUnavailable(f"position service unreachable: {exc}") from exc
        if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            raise GeolocationDenied(f"position service refused the request ({response.status_code})")
        if response.status_code >= 400:
            raise GeolocationUnavailable(f"position service returned HTTP {response.status_code}")
        try:
            payload = response.json()
            return Coordinate(float(payload["latitude"]), float(payload["longitude"]))
        except (ValueError, KeyError, TypeError) as exc:
            raise GeolocationUnavailable("position service returned no usable coordinate") from exc


def build_provider(
    settings: GeolocationSettings,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[PositionProvider]:
    """Create the provider named in ``settings``; ``None`` when geolocation is disabled."""
    if settings.provider == "static":
        return StaticPositionProvider(Coordinate(settings.static_latitude, settings.static_longitude))
    if settings.provider == "ip":
        if client is None:
            raise ValueError("ip geolocation provider requires an HTTP client")
        return IpPositionProvider(client, endpoint=settings.ip_endpoint)
    return None
