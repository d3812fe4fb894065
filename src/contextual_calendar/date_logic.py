from __future__ import annotations

import re
from datetime import date

from contextual_calendar.models import BirthdayRecord

DEFAULT_LEAP_DAY_RULE = "mar1"


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def matches_day(record: BirthdayRecord, day: date) -> bool:
    return record.date.month == day.month and record.date.day == day.day


def birthday_date_for_year(record: BirthdayRecord, year: int, leap_day_rule: str) -> date:
    birth = record.date
    if birth.month == 2 and birth.day == 29 and not is_leap_year(year):
        if leap_day_rule == "feb28":
            return date(year, 2, 28)
        if leap_day_rule == "mar1":
            return date(year, 3, 1)
        raise ValueError(f"Unsupported leap day rule: {leap_day_rule}")
    return date(year, birth.month, birth.day)


def next_occurrence(record: BirthdayRecord, today: date, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> date:
    this_year = birthday_date_for_year(record, today.year, leap_day_rule)
    if this_year >= today:
        return this_year
    return birthday_date_for_year(record, today.year + 1, leap_day_rule)


def days_until(record: BirthdayRecord, today: date, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> int:
    nxt = next_occurrence(record, today, leap_day_rule)
    return (nxt - today).days


def age_in_years(record: BirthdayRecord, today: date) -> int:
    """Completed years between the birth date and ``today``."""
    birth = record.date
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


def turning_age(record: BirthdayRecord, occurrence: date) -> int | None:
    age = occurrence.year - record.date.year
    if age <= 0:
        return None
    return age


def parse_birthday_text(raw_text: str) -> date:
    value = raw_text.strip()

    match = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", value)
    if not match:
        raise ValueError("Birthday must use YYYY-MM-DD")

    year, month, day = (int(piece) for piece in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc
