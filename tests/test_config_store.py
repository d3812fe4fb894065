from pathlib import Path

import pytest

from contextual_calendar.config_store import ensure_default_config, load_config, save_config_atomic
from contextual_calendar.models import CalendarConfig


def test_roundtrip_config(tmp_path: Path) -> None:
    path = tmp_path / "calendar.toml"
    config = CalendarConfig(timezone="Europe/Berlin", first_weekday=2, leap_day_rule="feb28")

    save_config_atomic(path, config)

    assert load_config(path) == config


def test_ensure_default_config_writes_defaults_once(tmp_path: Path) -> None:
    path = tmp_path / "config" / "calendar.toml"

    ensure_default_config(path)
    loaded = load_config(path)

    assert loaded == CalendarConfig(timezone="America/Los_Angeles", first_weekday=1, leap_day_rule="mar1")

    path.write_text('timezone = "UTC"\n', encoding="utf-8")
    ensure_default_config(path)
    assert load_config(path).timezone == "UTC"


def test_missing_keys_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "calendar.toml"
    path.write_text('timezone = "UTC"\nleap_day_rule = "FEB28"\n', encoding="utf-8")

    loaded = load_config(path)

    assert loaded.first_weekday == 1
    assert loaded.leap_day_rule == "feb28"


def test_invalid_first_weekday_rejected(tmp_path: Path) -> None:
    path = tmp_path / "calendar.toml"
    path.write_text('timezone = "UTC"\nfirst_weekday = 9\n', encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_invalid_leap_day_rule_rejected(tmp_path: Path) -> None:
    path = tmp_path / "calendar.toml"
    path.write_text('timezone = "UTC"\nleap_day_rule = "skip"\n', encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_empty_timezone_rejected(tmp_path: Path) -> None:
    path = tmp_path / "calendar.toml"
    path.write_text("first_weekday = 1\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")
