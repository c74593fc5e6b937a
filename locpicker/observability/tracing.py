"""Tracing helpers for resolver requests and lookups."""
from __future__ import annotations

import contextlib
import time
from typing import Iterator

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def _logger():
    return structlog.get_logger("locpicker.trace")


def set_context(*, channel: str, sequence: int) -> None:
    bind_contextvars(channel=channel, sequence=sequence)


def clear_context() -> None:
    clear_contextvars()


@contextlib.contextmanager
def span(*, name: str, **fields: object) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        _logger().info("trace_span", span=name, elapsed_ms=elapsed_ms, **fields)


def log_discard(*, channel: str, sequence: int, reason: str) -> None:
    _logger().debug("result_discarded", channel=channel, sequence=sequence, reason=reason)


def log_lookup_result(*, kind: str, status: int, candidates: int, elapsed_ms: int) -> None:
    _logger().info(
        "lookup_result",
        kind=kind,
        status=status,
        candidates=candidates,
        elapsed_ms=elapsed_ms,
    )
