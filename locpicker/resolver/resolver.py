"""Location resolver: arbitrates map clicks, searches and geolocation.

Every request is stamped with a sequence number before any asynchronous
work starts. Completions compare their stamp against the per-channel
high-water mark and against ``last_applied_sequence`` before touching
state, so the last request issued wins regardless of which response
arrives last. All mutation happens synchronously between awaits on the
event loop; no locking is needed.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

import structlog

from locpicker.errors import (
    GeocodeError,
    GeocodeNotFound,
    GeocodeUnavailable,
    GeolocationError,
    GeolocationTimeout,
    GeolocationUnsupported,
)
from locpicker.geocode.client import Geocoder
from locpicker.geolocation.source import GeolocationSource
from locpicker.map.surface import MapSurface
from locpicker.models.location import Coordinate, Location
from locpicker.observability.metrics import MetricsRegistry
from locpicker.observability.tracing import clear_context, log_discard, set_context
from locpicker.resolver.debounce import Debouncer
from locpicker.resolver.notices import ERROR, INFO, NoticeBoard
from locpicker.resolver.requests import GeolocateRequest, MapClickRequest, ResolutionRequest, SearchRequest
from locpicker.resolver.state import BusyFlags, ResolverState
from locpicker.settings import GeolocationSettings, PickerSettings

LOGGER = structlog.get_logger(__name__)

LocationSelected = Callable[[Location], None]


class LocationResolver:
    """Owns the selected location and the map surface it is shown on."""

    def __init__(
        self,
        *,
        map_surface: MapSurface,
        geocoder: Geocoder,
        geolocation: GeolocationSource,
        on_location_selected: Optional[LocationSelected] = None,
        initial_location: Optional[Location] = None,
        settings: Optional[PickerSettings] = None,
        geolocation_settings: Optional[GeolocationSettings] = None,
        notices: Optional[NoticeBoard] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._map = map_surface
        self._geocoder = geocoder
        self._geolocation = geolocation
        self._on_location_selected = on_location_selected
        self._settings = settings or PickerSettings()
        self._geo_settings = geolocation_settings or GeolocationSettings()
        self._metrics = metrics or MetricsRegistry()
        self.notices = notices or NoticeBoard(self._metrics)
        self._state = ResolverState(current=initial_location)
        self._debouncer = Debouncer(self._settings.debounce_seconds, self._on_search_quiet)
        self._tasks: Set[asyncio.Task] = set()
        self._mounted = False

    # ---- read access -------------------------------------------------

    @property
    def current(self) -> Optional[Location]:
        return self._state.current

    @property
    def pending_search_text(self) -> str:
        return self._state.pending_search_text

    @property
    def busy(self) -> BusyFlags:
        return BusyFlags(self._state.busy.searching, self._state.busy.locating)

    @property
    def last_applied_sequence(self) -> int:
        return self._state.last_applied_sequence

    @property
    def geolocation_supported(self) -> bool:
        return self._geolocation.supported

    # ---- lifecycle ---------------------------------------------------

    def mount(self, container: Any = None) -> None:
        """Initialise the map; must run on the event loop."""
        current = self._state.current
        center = current.coordinate if current else Coordinate(*self._settings.default_center)
        self._map.initialize(container, center, self._settings.default_zoom)
        self._map.on_click(self.handle_map_click)
        self._mounted = True
        if current is not None:
            self._map.set_marker(current.coordinate)
        elif self._settings.locate_on_mount and self._geolocation.supported:
            self.request_geolocation()

    def unmount(self) -> None:
        """Release the map and stop honouring any pending completion."""
        if self._state.closed:
            return
        self._state.close()
        self._debouncer.cancel()
        if self._mounted:
            self._map.destroy()
            self._mounted = False
        LOGGER.debug("resolver_unmounted", pending_tasks=len(self._tasks))

    async def settle(self) -> None:
        """Wait until every in-flight resolution task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---- channels ----------------------------------------------------

    def handle_map_click(self, coordinate: Coordinate) -> Optional[asyncio.Task]:
        """Select ``coordinate`` immediately and enrich it with an address."""
        if self._state.closed:
            return None
        request = MapClickRequest(sequence=self._state.stamp(MapClickRequest.kind), coordinate=coordinate)
        self._metrics.incr("requests_issued")
        self._select(request, Location.at(coordinate))
        return self._spawn(request, self._enrich(request, coordinate))

    def update_search_text(self, text: str) -> None:
        """Echo a keystroke and restart the quiet-period timer."""
        if self._state.closed:
            return
        self._state.pending_search_text = text
        if text.strip():
            self._debouncer.trigger()
        else:
            self._debouncer.cancel()

    def submit_search(self) -> Optional[asyncio.Task]:
        """Search for the pending text now instead of waiting for the timer."""
        self._debouncer.cancel()
        return self._issue_search()

    def request_geolocation(self) -> Optional[asyncio.Task]:
        if self._state.closed:
            return None
        request = GeolocateRequest(sequence=self._state.stamp(GeolocateRequest.kind))
        self._metrics.incr("requests_issued")
        self._state.set_busy(request.kind, True)
        return self._spawn(request, self._locate(request))

    # ---- internals ---------------------------------------------------

    def _on_search_quiet(self) -> None:
        self._issue_search()

    def _issue_search(self) -> Optional[asyncio.Task]:
        query = self._state.pending_search_text.strip()
        if self._state.closed or not query:
            return None
        request = SearchRequest(sequence=self._state.stamp(SearchRequest.kind), query=query)
        self._metrics.incr("requests_issued")
        self._state.set_busy(request.kind, True)
        return self._spawn(request, self._search(request))

    def _spawn(self, request: ResolutionRequest, work: Awaitable[None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(request, work))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, request: ResolutionRequest, work: Awaitable[None]) -> None:
        set_context(channel=request.kind, sequence=request.sequence)
        try:
            await work
        except Exception:  # pragma: no cover - defensive logging
            LOGGER.exception("resolution_failed", channel=request.kind, sequence=request.sequence)
            self._settle_busy(request)
        finally:
            clear_context()

    async def _search(self, request: SearchRequest) -> None:
        try:
            candidates = await self._geocoder.forward_lookup(request.query)
        except GeocodeError as exc:
            self._settle_busy(request)
            if self._state.is_newest(request):
                LOGGER.warning("forward_lookup_failed", query=request.query, reason=str(exc))
                self.notices.post("Error", "Failed to search location", severity=ERROR, error=GeocodeUnavailable)
            return
        self._settle_busy(request)

        if not candidates:
            if self._state.is_newest(request):
                self.notices.post(
                    "Not Found",
                    "No locations found for your search",
                    severity=ERROR,
                    error=GeocodeNotFound,
                )
            return
        if not self._state.accepts_result(request):
            self._discard(request, "superseded")
            return
        self._select(request, candidates[0], zoom=self._settings.select_zoom)
        if self._state.pending_search_text.strip() == request.query:
            self._state.pending_search_text = ""

    async def _locate(self, request: GeolocateRequest) -> None:
        try:
            located = await self._geolocation.get_current_position(
                timeout_ms=self._geo_settings.timeout_ms,
                high_accuracy=self._geo_settings.high_accuracy,
            )
        except GeolocationError as exc:
            self._settle_busy(request)
            if self._state.is_newest(request):
                self._report_geolocation_failure(exc)
            return
        self._settle_busy(request)

        if not self._state.accepts_result(request):
            self._discard(request, "superseded")
            return
        self._select(request, located, zoom=self._settings.select_zoom)
        await self._enrich(request, located.coordinate)

    async def _enrich(self, request: ResolutionRequest, coordinate: Coordinate) -> None:
        label: Optional[str] = None
        try:
            described = await self._geocoder.reverse_lookup(coordinate)
        except GeocodeError as exc:
            LOGGER.info("reverse_lookup_degraded", reason=str(exc))
        else:
            label = described.label

        if not self._state.accepts_label(request):
            self._discard(request, "selection changed")
            return
        if label:
            self._metrics.incr("labels_applied")
            self._announce(self._state.relabel(label))
        self.notices.post("Location Selected", self._state.current.describe(), severity=INFO)

    def _select(self, request: ResolutionRequest, location: Location, *, zoom: Optional[float] = None) -> None:
        previous = self._state.current
        self._state.apply(location, request.sequence)
        self._metrics.incr("results_applied")
        if self._mounted:
            moved = previous is None or previous.coordinate != location.coordinate
            if moved:
                if previous is not None:
                    self._map.remove_marker()
                self._map.set_marker(location.coordinate)
            if moved or zoom is not None:
                self._map.fly_to(location.coordinate, zoom)
        self._announce(location)

    def _announce(self, location: Location) -> None:
        LOGGER.info("location_selected", latitude=location.latitude, longitude=location.longitude, label=location.label)
        if self._on_location_selected is not None:
            self._on_location_selected(location)

    def _settle_busy(self, request: ResolutionRequest) -> None:
        if isinstance(request, MapClickRequest):
            return
        if self._state.is_latest(request):
            self._state.set_busy(request.kind, False)

    def _discard(self, request: ResolutionRequest, reason: str) -> None:
        self._metrics.incr("stale_discarded")
        log_discard(channel=request.kind, sequence=request.sequence, reason=reason)

    def _report_geolocation_failure(self, exc: GeolocationError) -> None:
        LOGGER.warning("geolocation_failed", error=type(exc).__name__, reason=str(exc))
        if isinstance(exc, GeolocationUnsupported):
            self.notices.post("Error", "Geolocation is not supported on this device", severity=ERROR, error=type(exc))
            return
        description = "Unable to retrieve your location. Please select a location manually."
        if isinstance(exc, GeolocationTimeout):
            description = "Timed out while retrieving your location. Please select a location manually."
        self.notices.post("Error", description, severity=ERROR, error=type(exc))
