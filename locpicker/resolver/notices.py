"""Dismissable, non-blocking notices shown next to the picker."""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

import structlog

from locpicker.errors import LocationPickerError
from locpicker.observability.metrics import MetricsRegistry

LOGGER = structlog.get_logger(__name__)

INFO = "info"
ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    notice_id: int
    title: str
    description: str
    severity: str = INFO
    error: Optional[Type[LocationPickerError]] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.notice_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "error": self.error.__name__ if self.error else None,
        }


class NoticeBoard:
    """Holds active notices until they are dismissed."""

    def __init__(self, metrics: Optional[MetricsRegistry] = None) -> None:
        self._notices: List[Notice] = []
        self._ids = itertools.count(1)
        self._metrics = metrics or MetricsRegistry()

    @property
    def active(self) -> Tuple[Notice, ...]:
        return tuple(self._notices)

    def errors(self) -> List[Notice]:
        return [notice for notice in self._notices if notice.severity == ERROR]

    def post(
        self,
        title: str,
        description: str,
        *,
        severity: str = INFO,
        error: Optional[Type[LocationPickerError]] = None,
    ) -> Notice:
        notice = Notice(next(self._ids), title, description, severity, error)
        self._notices.append(notice)
        self._metrics.incr("notices_posted")
        LOGGER.info("notice_posted", title=title, severity=severity, error=notice.to_dict()["error"])
        return notice

    def dismiss(self, notice_id: int) -> bool:
        """Remove a notice; returns False when it was already gone."""
        for idx, notice in enumerate(self._notices):
            if notice.notice_id == notice_id:
                del self._notices[idx]
                return True
        return False

    def clear(self) -> None:
        self._notices.clear()
