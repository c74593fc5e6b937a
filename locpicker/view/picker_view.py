"""Presentation layer: forwards user intents and renders resolver state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from locpicker.resolver.notices import Notice
from locpicker.resolver.resolver import LocationResolver

LOCATE_IDLE = "Use my location"
LOCATE_BUSY = "Locating..."


@dataclass(frozen=True)
class PickerViewModel:
    """Everything needed to draw the widget once."""

    search_text: str
    searching: bool
    locate_label: str
    locate_enabled: bool
    status_line: Optional[str]
    notices: Tuple[Notice, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "search_text": self.search_text,
            "searching": self.searching,
            "locate_label": self.locate_label,
            "locate_enabled": self.locate_enabled,
            "status_line": self.status_line,
            "notices": [notice.to_dict() for notice in self.notices],
        }


class LocationPickerView:
    def __init__(self, resolver: LocationResolver) -> None:
        self._resolver = resolver

    def type_text(self, text: str) -> None:
        self._resolver.update_search_text(text)

    def submit(self):
        return self._resolver.submit_search()

    def use_my_location(self):
        # the control is disabled while a request is outstanding
        if self._resolver.busy.locating:
            return None
        return self._resolver.request_geolocation()

    def dismiss(self, notice_id: int) -> bool:
        return self._resolver.notices.dismiss(notice_id)

    def render(self) -> PickerViewModel:
        busy = self._resolver.busy
        current = self._resolver.current
        return PickerViewModel(
            search_text=self._resolver.pending_search_text,
            searching=busy.searching,
            locate_label=LOCATE_BUSY if busy.locating else LOCATE_IDLE,
            locate_enabled=not busy.locating,
            status_line=current.describe() if current else None,
            notices=self._resolver.notices.active,
        )
