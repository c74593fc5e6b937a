"""Settings loading and validation for the picker and its collaborators."""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Dict, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")

ENV_USER_AGENT = "LOCPICKER_USER_AGENT"
ENV_GEOCODE_URL = "LOCPICKER_GEOCODE_URL"


class GeocodeSettings(BaseModel):
    """Connection settings for the Nominatim-compatible geocoding service."""

    base_url: str = "https://nominatim.openstreetmap.org"
    user_agent: str = "locpicker/0.1 (set your email)"
    timeout_seconds: float = Field(default=10.0, gt=0)
    min_interval_seconds: float = Field(default=1.0, ge=0)
    language: str = "en"
    result_limit: int = Field(default=5, ge=1, le=50)
    max_connections: int = Field(default=4, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


class GeolocationSettings(BaseModel):
    """How the device position is obtained."""

    provider: Literal["ip", "static", "none"] = "ip"
    timeout_ms: int = Field(default=5000, gt=0)
    high_accuracy: bool = True
    maximum_age_ms: int = Field(default=0, ge=0)
    ip_endpoint: str = "https://ipapi.co/json/"
    static_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    static_longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def _static_needs_position(self) -> "GeolocationSettings":
        if self.provider == "static" and (self.static_latitude is None or self.static_longitude is None):
            raise ValueError("static provider requires static_latitude and static_longitude")
        return self


class PickerSettings(BaseModel):
    """Widget behaviour: debounce window and map viewport defaults."""

    debounce_ms: int = Field(default=500, ge=0)
    default_center: Tuple[float, float] = (51.505, -0.09)
    default_zoom: float = Field(default=13, ge=0, le=22)
    select_zoom: float = Field(default=15, ge=0, le=22)
    locate_on_mount: bool = True

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class Settings(BaseModel):
    geocode: GeocodeSettings = Field(default_factory=GeocodeSettings)
    geolocation: GeolocationSettings = Field(default_factory=GeolocationSettings)
    picker: PickerSettings = Field(default_factory=PickerSettings)


def _apply_env(raw: Dict[str, object], environ: Mapping[str, str]) -> Dict[str, object]:
    geocode = dict(raw.get("geocode", {}) or {})
    if user_agent := environ.get(ENV_USER_AGENT):
        geocode["user_agent"] = user_agent
    if base_url := environ.get(ENV_GEOCODE_URL):
        geocode["base_url"] = base_url
    merged = dict(raw)
    merged["geocode"] = geocode
    return merged


def load_settings(path: Path = DEFAULT_SETTINGS_PATH, *, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read the TOML configuration file, falling back to defaults when absent."""
    raw: Dict[str, object] = {}
    if path.exists():
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    raw = _apply_env(raw, os.environ if environ is None else environ)
    try:
        return Settings.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings in {path}: {exc}") from exc
