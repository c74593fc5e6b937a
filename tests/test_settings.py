from pathlib import Path

import pytest

from locpicker.settings import load_settings

ROOT = Path(__file__).resolve().parent.parent


def test_repository_settings_load():
    settings = load_settings(ROOT / "config" / "settings.toml", environ={})
    assert settings.picker.debounce_ms == 500
    assert settings.picker.debounce_seconds == 0.5
    assert settings.geolocation.timeout_ms == 5000
    assert settings.geolocation.high_accuracy is True
    assert settings.geocode.base_url == "https://nominatim.openstreetmap.org"


def test_missing_file_uses_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.toml", environ={})
    assert settings.picker.default_center == (51.505, -0.09)
    assert settings.picker.default_zoom == 13
    assert settings.picker.select_zoom == 15


def test_environment_overrides_geocode_section(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text('[geocode]\nuser_agent = "from-file"\n', encoding="utf-8")
    settings = load_settings(
        path,
        environ={"LOCPICKER_USER_AGENT": "from-env", "LOCPICKER_GEOCODE_URL": "https://geo.internal/"},
    )
    assert settings.geocode.user_agent == "from-env"
    assert settings.geocode.base_url == "https://geo.internal"


def test_invalid_settings_raise_value_error(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text('[geolocation]\nprovider = "satellite"\ntimeout_ms = -1\n', encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid settings"):
        load_settings(path, environ={})


def test_static_provider_requires_coordinates(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text('[geolocation]\nprovider = "static"\nstatic_latitude = 45.0\n', encoding="utf-8")
    with pytest.raises(ValueError, match="static_longitude"):
        load_settings(path, environ={})
