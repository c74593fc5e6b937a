"""Forward and reverse lookups against a Nominatim-compatible HTTP API."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Protocol

import httpx
import structlog
from pydantic import ValidationError

from locpicker.errors import GeocodeUnavailable
from locpicker.geocode.schemas import PLACE_LIST, NominatimPlace
from locpicker.models.location import Coordinate, Location
from locpicker.observability.metrics import MetricsRegistry
from locpicker.observability.tracing import log_lookup_result, span

LOGGER = structlog.get_logger(__name__)


class Geocoder(Protocol):
    async def forward_lookup(self, query: str) -> List[Location]: ...

    async def reverse_lookup(self, coordinate: Coordinate) -> Location: ...


class GeocodeClient:
    """Thin request/response wrapper; failures surface as ``GeocodeUnavailable``.

    No retries are attempted. Consecutive requests are spaced by
    ``min_interval`` seconds to respect the public Nominatim usage policy.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        language: Optional[str] = None,
        result_limit: int = 5,
        min_interval: float = 0.0,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._language = language
        self._result_limit = result_limit
        self._min_interval = min_interval
        self._metrics = metrics or MetricsRegistry()
        self._last_request_ts = 0.0
        self._throttle_lock = asyncio.Lock()

    async def _throttle(self) -> None:
        if self._min_interval <= 0:
            return
        async with self._throttle_lock:
            wait = self._last_request_ts + self._min_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts = time.monotonic()

    async def _get_json(self, kind: str, path: str, params: Dict[str, Any]) -> Any:
        await self._throttle()
        headers = {"Accept-Language": self._language} if self._language else None
        start = time.perf_counter()
        try:
            with span(name=f"geocode_{kind}"), self._metrics.timed("lookup_duration_ms"):
                response = await self._client.get(f"{self._base_url}{path}", params=params, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            self._metrics.incr("lookup_failures")
            raise GeocodeUnavailable(f"{kind} lookup returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            self._metrics.incr("lookup_failures")
            raise GeocodeUnavailable(f"{kind} lookup failed: {exc}") from exc
        except ValueError as exc:
            self._metrics.incr("lookup_failures")
            raise GeocodeUnavailable(f"{kind} lookup returned an unreadable body") from exc
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        candidates = len(payload) if isinstance(payload, list) else 1
        log_lookup_result(kind=kind, status=response.status_code, candidates=candidates, elapsed_ms=elapsed_ms)
        return payload

    async def forward_lookup(self, query: str, *, limit: Optional[int] = None) -> List[Location]:
        """Resolve free text to candidate locations, most relevant first."""
        text = query.strip()
        if not text:
            return []
        self._metrics.incr("forward_lookups")
        params = {"q": text, "format": "jsonv2", "limit": limit or self._result_limit}
        payload = await self._get_json("forward", "/search", params)
        try:
            places = PLACE_LIST.validate_python(payload)
        except ValidationError as exc:
            self._metrics.incr("lookup_failures")
            raise GeocodeUnavailable("forward lookup returned an unexpected payload") from exc

        results: List[Location] = []
        for place in places:
            location = _place_to_location(place)
            if location is None:
                LOGGER.debug("candidate_skipped", place_id=place.place_id, lat=place.lat, lon=place.lon)
                continue
            results.append(location)
        return results

    async def reverse_lookup(self, coordinate: Coordinate) -> Location:
        """Describe ``coordinate``; the label is ``None`` when the service knows no address."""
        self._metrics.incr("reverse_lookups")
        params = {"lat": coordinate.latitude, "lon": coordinate.longitude, "format": "jsonv2"}
        payload = await self._get_json("reverse", "/reverse", params)
        try:
            place = NominatimPlace.model_validate(payload)
        except ValidationError as exc:
            self._metrics.incr("lookup_failures")
            raise GeocodeUnavailable("reverse lookup returned an unexpected payload") from exc
        if place.error:
            LOGGER.info("reverse_no_address", reason=place.error)
            return Location.at(coordinate)
        return Location.at(coordinate, label=place.display_name)


def _place_to_location(place: NominatimPlace) -> Optional[Location]:
    if place.lat is None or place.lon is None:
        return None
    try:
        return Location(latitude=place.lat, longitude=place.lon, label=place.display_name)
    except ValueError:
        return None
