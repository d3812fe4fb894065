"""Month and week grid layout for the calendar view.

Weekdays are numbered the way the calendar configuration stores them:
Sunday=1 through Saturday=7.
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date

from contextual_calendar.models import SATURDAY, SUNDAY, CalendarCell

DAYS_PER_WEEK = 7

_MIN_ORDINAL = date.min.toordinal()
_MAX_ORDINAL = date.max.toordinal()

VERY_SHORT_WEEKDAY_SYMBOLS = ("S", "M", "T", "W", "T", "F", "S")


def _validate_first_weekday(first_weekday: int) -> None:
    if first_weekday < SUNDAY or first_weekday > SATURDAY:
        raise ValueError(f"first_weekday must be between {SUNDAY} and {SATURDAY}, got {first_weekday}")


def weekday_of(day: date) -> int:
    return day.isoweekday() % DAYS_PER_WEEK + 1


def weekday_symbols(first_weekday: int = SUNDAY) -> list[str]:
    _validate_first_weekday(first_weekday)
    return [
        VERY_SHORT_WEEKDAY_SYMBOLS[(first_weekday - 1 + index) % DAYS_PER_WEEK]
        for index in range(DAYS_PER_WEEK)
    ]


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def build_month_grid(reference_date: date, first_weekday: int = SUNDAY) -> list[CalendarCell]:
    """Lay out the month containing ``reference_date`` as whole weeks.

    Leading and trailing slots that belong to the neighbouring months are
    returned as blank cells rather than as adjacent-month dates.
    """
    _validate_first_weekday(first_weekday)

    first_day = reference_date.replace(day=1)
    total_days = days_in_month(first_day.year, first_day.month)

    offset = (weekday_of(first_day) - first_weekday + DAYS_PER_WEEK) % DAYS_PER_WEEK
    total_cells = -(-(offset + total_days) // DAYS_PER_WEEK) * DAYS_PER_WEEK

    cells: list[CalendarCell] = []
    for index in range(total_cells):
        day_number = index - offset + 1
        if 1 <= day_number <= total_days:
            cells.append(CalendarCell(date=first_day.replace(day=day_number)))
        else:
            cells.append(CalendarCell())
    return cells


def build_week_grid(reference_date: date, first_weekday: int = SUNDAY) -> list[CalendarCell]:
    """The seven days of the week containing ``reference_date``.

    Slots before ``date.min`` or after ``date.max`` are blank.
    """
    _validate_first_weekday(first_weekday)

    offset = (weekday_of(reference_date) - first_weekday + DAYS_PER_WEEK) % DAYS_PER_WEEK
    start_ordinal = reference_date.toordinal() - offset

    cells: list[CalendarCell] = []
    for index in range(DAYS_PER_WEEK):
        ordinal = start_ordinal + index
        if _MIN_ORDINAL <= ordinal <= _MAX_ORDINAL:
            cells.append(CalendarCell(date=date.fromordinal(ordinal)))
        else:
            cells.append(CalendarCell())
    return cells


def weeks(cells: list[CalendarCell]) -> list[list[CalendarCell]]:
    return [cells[index : index + DAYS_PER_WEEK] for index in range(0, len(cells), DAYS_PER_WEEK)]


def add_months(reference_date: date, months: int) -> date:
    """Shift by whole months, clamping the day; stops at ``date.min``/``date.max``."""
    month_index = reference_date.year * 12 + (reference_date.month - 1) + months
    year, month_zero = divmod(month_index, 12)
    if year < MINYEAR:
        return date.min
    if year > MAXYEAR:
        return date.max

    month = month_zero + 1
    day = min(reference_date.day, days_in_month(year, month))
    return date(year, month, day)


def previous_month(reference_date: date) -> date:
    return add_months(reference_date, -1)


def next_month(reference_date: date) -> date:
    return add_months(reference_date, 1)


def _add_days(reference_date: date, days: int) -> date:
    ordinal = min(max(reference_date.toordinal() + days, _MIN_ORDINAL), _MAX_ORDINAL)
    return date.fromordinal(ordinal)


def previous_week(reference_date: date) -> date:
    return _add_days(reference_date, -DAYS_PER_WEEK)


def next_week(reference_date: date) -> date:
    return _add_days(reference_date, DAYS_PER_WEEK)
