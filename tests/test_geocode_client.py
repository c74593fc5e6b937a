import asyncio
import time

import httpx
import pytest

from locpicker.errors import GeocodeUnavailable
from locpicker.geocode.session import create_geocode_session
from locpicker.models.location import Coordinate, Location
from locpicker.observability.metrics import MetricsRegistry
from locpicker.settings import GeocodeSettings

SETTINGS = GeocodeSettings(
    base_url="https://geo.test/",
    user_agent="locpicker-tests/1.0 (qa@example.org)",
    min_interval_seconds=0,
)


def _run_with(handler, work, *, settings=SETTINGS, metrics=None):
    async def _run():
        transport = httpx.MockTransport(handler)
        async with create_geocode_session(settings, transport=transport, metrics=metrics) as client:
            return await work(client)

    return asyncio.run(_run())


def test_forward_lookup_parses_candidates_in_order():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"lat": "40.0", "lon": "-73.0", "display_name": "123 Main Street", "place_id": 1},
                {"lat": "999", "lon": "0", "display_name": "Broken", "place_id": 2},
                {"lat": "41.5", "lon": "-72.5", "display_name": "Main Street Station", "place_id": 3},
            ],
        )

    results = _run_with(handler, lambda client: client.forward_lookup("  Main Street "))

    assert results == [
        Location(40.0, -73.0, "123 Main Street"),
        Location(41.5, -72.5, "Main Street Station"),
    ]
    request = seen[0]
    assert request.url.path == "/search"
    assert request.url.params["q"] == "Main Street"
    assert request.url.params["format"] == "jsonv2"
    assert request.url.params["limit"] == "5"
    assert request.headers["User-Agent"] == SETTINGS.user_agent
    assert request.headers["Accept-Language"] == "en"


def test_forward_lookup_empty_list_is_not_an_error():
    results = _run_with(lambda request: httpx.Response(200, json=[]), lambda client: client.forward_lookup("Atlantis"))
    assert results == []


def test_forward_lookup_blank_query_skips_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert _run_with(handler, lambda client: client.forward_lookup("   ")) == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="overloaded"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"unexpected": "shape"}),
    ],
)
def test_forward_lookup_failures_raise_unavailable(response):
    metrics = MetricsRegistry()
    with pytest.raises(GeocodeUnavailable):
        _run_with(lambda request: response, lambda client: client.forward_lookup("Main Street"), metrics=metrics)
    assert metrics.get("lookup_failures") == 1


def test_transport_error_raises_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocodeUnavailable):
        _run_with(handler, lambda client: client.reverse_lookup(Coordinate(1.0, 2.0)))


def test_reverse_lookup_keeps_requested_coordinate():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/reverse"
        assert request.url.params["lat"] == "10.5"
        assert request.url.params["lon"] == "20.5"
        return httpx.Response(200, json={"lat": "10.49", "lon": "20.51", "display_name": "Harbour Road"})

    location = _run_with(handler, lambda client: client.reverse_lookup(Coordinate(10.5, 20.5)))
    assert location == Location(10.5, 20.5, "Harbour Road")


def test_reverse_lookup_without_address_returns_unlabelled_location():
    handler = lambda request: httpx.Response(200, json={"error": "Unable to geocode"})  # noqa: E731
    location = _run_with(handler, lambda client: client.reverse_lookup(Coordinate(0.0, -160.0)))
    assert location == Location(0.0, -160.0)


def test_reverse_lookup_http_error_raises_unavailable():
    with pytest.raises(GeocodeUnavailable):
        _run_with(
            lambda request: httpx.Response(500),
            lambda client: client.reverse_lookup(Coordinate(1.0, 1.0)),
        )


def test_requests_are_spaced_by_min_interval():
    settings = SETTINGS.model_copy(update={"min_interval_seconds": 0.05})

    async def work(client):
        start = time.monotonic()
        await client.forward_lookup("one")
        await client.forward_lookup("two")
        return time.monotonic() - start

    elapsed = _run_with(lambda request: httpx.Response(200, json=[]), work, settings=settings)
    assert elapsed >= 0.045
