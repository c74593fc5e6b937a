"""Pydantic models for Nominatim JSON payloads."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class NominatimPlace(BaseModel):
    """A single search or reverse result (``format=jsonv2``)."""

    model_config = ConfigDict(extra="ignore")

    lat: Optional[float] = None
    lon: Optional[float] = None
    display_name: Optional[str] = None
    place_id: Optional[int] = None
    category: Optional[str] = None
    type: Optional[str] = None
    importance: Optional[float] = None
    error: Optional[str] = Field(default=None, description="Set when the service found nothing")


PLACE_LIST = TypeAdapter(List[NominatimPlace])
