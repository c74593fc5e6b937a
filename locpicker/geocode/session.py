"""Factories for httpx-backed geocoding sessions."""
from __future__ import annotations

import contextlib
from typing import AsyncIterator, Optional

import httpx

from locpicker.geocode.client import GeocodeClient
from locpicker.observability.metrics import MetricsRegistry
from locpicker.settings import GeocodeSettings


@contextlib.asynccontextmanager
async def create_geocode_session(
    settings: GeocodeSettings,
    *,
    metrics: Optional[MetricsRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[GeocodeClient]:
    """Yield a configured `GeocodeClient` for the duration of the context."""
    headers = {"User-Agent": settings.user_agent, "Accept": "application/json"}
    limits = httpx.Limits(max_connections=settings.max_connections, max_keepalive_connections=settings.max_connections)
    async with httpx.AsyncClient(
        headers=headers,
        limits=limits,
        timeout=settings.timeout_seconds,
        transport=transport,
    ) as client:
        yield GeocodeClient(
            client,
            base_url=settings.base_url,
            language=settings.language,
            result_limit=settings.result_limit,
            min_interval=settings.min_interval_seconds,
            metrics=metrics,
        )
