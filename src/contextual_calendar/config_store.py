from __future__ import annotations

import os
import tempfile
import tomllib
from pathlib import Path

from contextual_calendar.models import SATURDAY, SUNDAY, CalendarConfig

ALLOWED_LEAP_DAY_RULES = {"feb28", "mar1"}


def _toml_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def validate_config(config: CalendarConfig) -> CalendarConfig:
    timezone = config.timezone.strip()
    if not timezone:
        raise ValueError("timezone must not be empty")

    if not isinstance(config.first_weekday, int) or not SUNDAY <= config.first_weekday <= SATURDAY:
        raise ValueError(f"first_weekday must be between {SUNDAY} (Sunday) and {SATURDAY} (Saturday)")

    leap_day_rule = config.leap_day_rule.strip().lower()
    if leap_day_rule not in ALLOWED_LEAP_DAY_RULES:
        raise ValueError(f"leap_day_rule must be one of {sorted(ALLOWED_LEAP_DAY_RULES)}")

    return CalendarConfig(
        timezone=timezone,
        first_weekday=config.first_weekday,
        leap_day_rule=leap_day_rule,
    )


def load_config(path: Path) -> CalendarConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as file_obj:
        data = tomllib.load(file_obj)

    try:
        first_weekday = int(data.get("first_weekday", SUNDAY))
    except (TypeError, ValueError) as exc:
        raise ValueError("first_weekday must be an integer") from exc

    config = CalendarConfig(
        timezone=str(data.get("timezone", "")),
        first_weekday=first_weekday,
        leap_day_rule=str(data.get("leap_day_rule", "mar1")),
    )
    return validate_config(config)


def render_config(config: CalendarConfig) -> str:
    validated = validate_config(config)

    lines: list[str] = [
        f'timezone = "{_toml_escape(validated.timezone)}"',
        "",
        "# 1 = Sunday ... 7 = Saturday",
        f"first_weekday = {validated.first_weekday}",
        "",
        "# Where Feb 29 birthdays land in non-leap years: feb28 or mar1",
        f'leap_day_rule = "{validated.leap_day_rule}"',
    ]
    return "\n".join(lines) + "\n"


def save_config_atomic(path: Path, config: CalendarConfig) -> None:
    rendered = render_config(config)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        temp_file.write(rendered)
        temp_name = temp_file.name

    os.replace(temp_name, path)


def ensure_default_config(path: Path) -> None:
    if path.exists():
        return

    default_config = CalendarConfig(
        timezone="America/Los_Angeles",
        first_weekday=SUNDAY,
        leap_day_rule="mar1",
    )
    save_config_atomic(path, default_config)
