from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from contextual_calendar.birthday_store import BirthdayStore
from contextual_calendar.calendar_grid import (
    build_month_grid,
    build_week_grid,
    next_month,
    next_week,
    previous_month,
    previous_week,
    weekday_symbols,
    weeks,
)
from contextual_calendar.date_logic import days_until, next_occurrence, turning_age
from contextual_calendar.models import SUNDAY, BirthdayRecord, CalendarCell

CALLBACK_PREFIX = "cal"
NOOP_CALLBACK = f"{CALLBACK_PREFIX}:noop"
CALLBACK_ACTIONS = {"month", "week", "day"}

BIRTHDAY_MARKER = "🎂"


@dataclass(frozen=True)
class BirthdayListRow:
    name: str
    days_until: int
    next_date: date
    turning_age: int | None


def callback_data(action: str, day: date) -> str:
    return f"{CALLBACK_PREFIX}:{action}:{day.isoformat()}"


def parse_callback_data(data: str) -> tuple[str, date | None]:
    if data == NOOP_CALLBACK:
        return "noop", None

    pieces = data.split(":")
    if len(pieces) != 3 or pieces[0] != CALLBACK_PREFIX or pieces[1] not in CALLBACK_ACTIONS:
        raise ValueError(f"Unrecognized callback data: {data!r}")
    return pieces[1], date.fromisoformat(pieces[2])


def month_title(reference: date) -> str:
    return f"{calendar.month_name[reference.month]} {reference.year}"


def format_long_date(day: date) -> str:
    return f"{calendar.month_name[day.month]} {day.day}, {day.year}"


def day_label(day: date, today: date, has_birthday: bool) -> str:
    label = str(day.day)
    if day == today:
        label = f"[{label}]"
    if has_birthday:
        label = f"{label}{BIRTHDAY_MARKER}"
    return label


def _noop_button(text: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=NOOP_CALLBACK)


def _cell_button(cell: CalendarCell, today: date, store: BirthdayStore) -> InlineKeyboardButton:
    if cell.date is None:
        return _noop_button(" ")
    label = day_label(cell.date, today, store.has_birthday_on(cell.date))
    return InlineKeyboardButton(label, callback_data=callback_data("day", cell.date))


def _header_rows(title: str, first_weekday: int) -> list[list[InlineKeyboardButton]]:
    return [
        [_noop_button(title)],
        [_noop_button(symbol) for symbol in weekday_symbols(first_weekday)],
    ]


def render_month_keyboard(
    reference: date,
    today: date,
    store: BirthdayStore,
    first_weekday: int = SUNDAY,
) -> InlineKeyboardMarkup:
    rows = _header_rows(month_title(reference), first_weekday)
    for week in weeks(build_month_grid(reference, first_weekday)):
        rows.append([_cell_button(cell, today, store) for cell in week])

    rows.append(
        [
            InlineKeyboardButton("◀", callback_data=callback_data("month", previous_month(reference))),
            InlineKeyboardButton("Today", callback_data=callback_data("month", today)),
            InlineKeyboardButton("▶", callback_data=callback_data("month", next_month(reference))),
        ]
    )
    return InlineKeyboardMarkup(rows)


def render_week_keyboard(
    reference: date,
    today: date,
    store: BirthdayStore,
    first_weekday: int = SUNDAY,
) -> InlineKeyboardMarkup:
    rows = _header_rows(format_long_date(reference), first_weekday)
    rows.append([_cell_button(cell, today, store) for cell in build_week_grid(reference, first_weekday)])
    rows.append(
        [
            InlineKeyboardButton("◀", callback_data=callback_data("week", previous_week(reference))),
            InlineKeyboardButton("Today", callback_data=callback_data("week", today)),
            InlineKeyboardButton("▶", callback_data=callback_data("week", next_week(reference))),
        ]
    )
    return InlineKeyboardMarkup(rows)


def render_day_detail(day: date, records: list[BirthdayRecord]) -> str:
    """Detail sheet for ``day``.

    The age shown is the one reached on ``day`` itself, which equals
    ``age_in_years(record, today) + 1`` for the upcoming occurrence and stays
    correct when browsing past or future years.
    """
    lines = [f"Birthdays on {format_long_date(day)}", ""]
    if not records:
        lines.append("No birthdays on this day.")
        return "\n".join(lines)

    for record in records:
        lines.append(record.name)
        age = turning_age(record, day)
        if age is not None:
            lines.append(f"   Turns {age} years old")
        if record.notes:
            lines.append(f"   Notes: {record.notes}")
        lines.append("")

    return "\n".join(lines).rstrip()


def build_list_rows(records: list[BirthdayRecord], today: date, leap_day_rule: str) -> list[BirthdayListRow]:
    rows: list[BirthdayListRow] = []
    for record in records:
        next_date = next_occurrence(record, today, leap_day_rule)
        rows.append(
            BirthdayListRow(
                name=record.name,
                days_until=days_until(record, today, leap_day_rule),
                next_date=next_date,
                turning_age=turning_age(record, next_date),
            )
        )

    rows.sort(key=lambda row: (row.days_until, row.name.lower()))
    return rows


def render_birthday_list(rows: list[BirthdayListRow]) -> str:
    lines = [f"Tracked birthdays ({len(rows)})", "Sorted by soonest:"]

    for index, row in enumerate(rows, start=1):
        lines.append(f"{index}. {row.name}")
        details = [
            "Today" if row.days_until == 0 else f"In {row.days_until}d",
            f"Next {row.next_date.isoformat()}",
        ]
        if row.turning_age is not None:
            details.append(f"Turning {row.turning_age}")
        lines.append(f"   {' | '.join(details)}")
        lines.append("")

    return "\n".join(lines).rstrip()
