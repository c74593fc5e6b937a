"""Command-line entrypoints for the report location picker."""
from __future__ import annotations

import argparse
import asyncio
import json
import shlex
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, List, Optional

import httpx
from dotenv import load_dotenv

from locpicker.errors import InvalidSelection, LocationPickerError
from locpicker.form.location_field import LocationField
from locpicker.geocode.session import create_geocode_session
from locpicker.geolocation.providers import build_provider
from locpicker.geolocation.source import GeolocationSource
from locpicker.map.surface import HeadlessMapSurface
from locpicker.models.location import Coordinate
from locpicker.observability.log import configure_logging
from locpicker.observability.metrics import MetricsRegistry
from locpicker.resolver.resolver import LocationResolver
from locpicker.settings import DEFAULT_SETTINGS_PATH, Settings, load_settings
from locpicker.view.picker_view import LocationPickerView

DEFAULT_LOGGING_CONFIG = Path("config/logging.yaml")


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="locpicker", description="Report location picker")
    parser.add_argument("--settings", default=str(DEFAULT_SETTINGS_PATH), help="Path to settings TOML")
    parser.add_argument("--logging-config", default=str(DEFAULT_LOGGING_CONFIG), help="Path to logging YAML")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Forward geocode a free-text query")
    search.add_argument("query", help="Address or place to look up")
    search.add_argument("--limit", type=int, help="Maximum number of candidates")

    reverse = sub.add_parser("reverse", help="Reverse geocode a coordinate")
    reverse.add_argument("latitude", type=float)
    reverse.add_argument("longitude", type=float)

    locate = sub.add_parser("locate", help="Request the current device position")
    locate.add_argument("--timeout-ms", type=int, help="Override the configured timeout")

    pick = sub.add_parser("pick", help="Drive a headless picker with line commands")
    pick.add_argument("--script", help="Read commands from a file instead of stdin")
    pick.add_argument("--metrics-out", help="Write session counters to this JSON file")

    return parser


def _geolocation_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": settings.geocode.user_agent},
        timeout=settings.geolocation.timeout_ms / 1000.0,
        transport=transport,
    )


async def run_search(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    async with create_geocode_session(settings.geocode, transport=transport) as client:
        results = await client.forward_lookup(args.query, limit=getattr(args, "limit", None))
    if not results:
        raise SystemExit(f"No locations found for {args.query!r}")
    print(json.dumps([location.to_dict() for location in results], indent=2))


async def run_reverse(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    try:
        coordinate = Coordinate(args.latitude, args.longitude)
    except ValueError as exc:
        raise SystemExit(str(exc))
    async with create_geocode_session(settings.geocode, transport=transport) as client:
        location = await client.reverse_lookup(coordinate)
    print(json.dumps(location.to_dict(), indent=2))


async def run_locate(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    geo = settings.geolocation
    async with _geolocation_client(settings, transport) as http:
        source = GeolocationSource(build_provider(geo, http), maximum_age_ms=geo.maximum_age_ms)
        location = await source.get_current_position(
            timeout_ms=getattr(args, "timeout_ms", None) or geo.timeout_ms,
            high_accuracy=geo.high_accuracy,
        )
    print(json.dumps(location.to_dict(), indent=2))


async def _read_line(stream: IO[str]) -> str:
    return await asyncio.to_thread(stream.readline)


async def _dispatch(command: List[str], *, view: LocationPickerView, resolver: LocationResolver,
                    surface: HeadlessMapSurface, quiet_seconds: float) -> None:
    name, params = command[0], command[1:]
    if name == "type":
        view.type_text(" ".join(params))
    elif name == "enter":
        view.submit()
    elif name == "click":
        surface.click(float(params[0]), float(params[1]))
    elif name == "locate":
        view.use_my_location()
    elif name == "wait":
        await asyncio.sleep(float(params[0]) if params else quiet_seconds)
        await resolver.settle()
    elif name == "dismiss":
        view.dismiss(int(params[0]))
    elif name == "show":
        print(json.dumps(view.render().to_dict(), indent=2))
    else:
        print(f"unknown command: {name}", file=sys.stderr)


async def run_pick(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Run an interactive picker session and print the committed location."""
    metrics = MetricsRegistry()
    field = LocationField()
    surface = HeadlessMapSurface()
    script_path = getattr(args, "script", None)
    source_stream = stream or (Path(script_path).open("r", encoding="utf-8") if script_path else sys.stdin)
    quiet_seconds = settings.picker.debounce_seconds + 0.05

    try:
        async with create_geocode_session(settings.geocode, metrics=metrics, transport=transport) as geocoder, \
                _geolocation_client(settings, transport) as http:
            geolocation = GeolocationSource(
                build_provider(settings.geolocation, http),
                maximum_age_ms=settings.geolocation.maximum_age_ms,
                metrics=metrics,
            )
            resolver = LocationResolver(
                map_surface=surface,
                geocoder=geocoder,
                geolocation=geolocation,
                on_location_selected=field.on_location_selected,
                settings=settings.picker,
                geolocation_settings=settings.geolocation,
                metrics=metrics,
            )
            view = LocationPickerView(resolver)
            resolver.mount(container="headless")
            while True:
                line = await _read_line(source_stream)
                if not line:
                    break
                command = shlex.split(line)
                if not command or command[0].startswith("#"):
                    continue
                if command[0] == "quit":
                    break
                try:
                    await _dispatch(command, view=view, resolver=resolver, surface=surface, quiet_seconds=quiet_seconds)
                except (IndexError, ValueError) as exc:
                    print(f"bad arguments for {command[0]}: {exc}", file=sys.stderr)
            await resolver.settle()
            print(json.dumps(view.render().to_dict(), indent=2))
            resolver.unmount()
    finally:
        if source_stream is not sys.stdin and stream is None:
            source_stream.close()

    if getattr(args, "metrics_out", None):
        session_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        metrics.export(Path(args.metrics_out), session_id=session_id)
    try:
        payload = field.to_payload()
    except InvalidSelection as exc:
        raise SystemExit(str(exc))
    print(json.dumps(payload, indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI."""
    load_dotenv()
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(Path(args.logging_config))
    try:
        settings = load_settings(Path(args.settings))
    except ValueError as exc:
        raise SystemExit(f"Failed to load settings: {exc}")

    runners = {
        "search": run_search,
        "reverse": run_reverse,
        "locate": run_locate,
        "pick": run_pick,
    }
    try:
        asyncio.run(runners[args.command](args, settings))
    except LocationPickerError as exc:
        raise SystemExit(f"{type(exc).__name__}: {exc}")


if __name__ == "__main__":
    main()
