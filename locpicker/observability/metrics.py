"""Counters collected over one picker session."""
from __future__ import annotations

import contextlib
import json
import time
from pathlib import Path
from typing import Dict, Iterator

import structlog

LOGGER = structlog.get_logger(__name__)

COUNTERS = (
    "requests_issued",
    "forward_lookups",
    "reverse_lookups",
    "geolocation_requests",
    "results_applied",
    "labels_applied",
    "stale_discarded",
    "lookup_failures",
    "notices_posted",
    "lookup_duration_ms",
)


class MetricsRegistry:
    """Shared by the resolver and its collaborators for a single session."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = dict.fromkeys(COUNTERS, 0)

    def incr(self, name: str, value: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextlib.contextmanager
    def timed(self, name: str) -> Iterator[None]:
        """Add the block's wall time in milliseconds to ``name``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.incr(name, int((time.perf_counter() - start) * 1000))

    def session_report(self, session_id: str) -> Dict[str, object]:
        """Counters plus the two ratios worth reading at the end of a session.

        ``discard_rate`` is the share of issued requests whose result lost to a
        newer one; ``mean_lookup_ms`` averages over forward and reverse lookups.
        """
        issued = self.get("requests_issued")
        lookups = self.get("forward_lookups") + self.get("reverse_lookups")
        return {
            "session_id": session_id,
            "counters": dict(self._counters),
            "discard_rate": round(self.get("stale_discarded") / issued, 3) if issued else 0.0,
            "mean_lookup_ms": self.get("lookup_duration_ms") // lookups if lookups else 0,
        }

    def export(self, path: Path, *, session_id: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.session_report(session_id), indent=2), encoding="utf-8")
        LOGGER.info("metrics_exported", path=str(path), session_id=session_id)
        return path
