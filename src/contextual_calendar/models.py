from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


SUNDAY = 1
SATURDAY = 7


@dataclass(frozen=True)
class BirthdayRecord:
    id: str
    name: str
    date: date
    notes: str = ""

    @classmethod
    def create(cls, name: str, birth_date: date, notes: str = "") -> BirthdayRecord:
        return cls(id=str(uuid.uuid4()), name=name, date=birth_date, notes=notes)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BirthdayRecord:
        raw_date = str(data["date"])
        try:
            birth_date = date.fromisoformat(raw_date)
        except ValueError:
            birth_date = datetime.fromisoformat(raw_date).date()

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            date=birth_date,
            notes=str(data.get("notes") or ""),
        )


@dataclass(frozen=True)
class CalendarCell:
    date: date | None = None

    @property
    def is_blank(self) -> bool:
        return self.date is None


@dataclass(frozen=True)
class CalendarConfig:
    timezone: str
    first_weekday: int
    leap_day_rule: str
