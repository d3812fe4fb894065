from datetime import date
from pathlib import Path

import pytest

from contextual_calendar.birthday_store import BirthdayStore
from contextual_calendar.calendar_view import (
    BirthdayListRow,
    build_list_rows,
    callback_data,
    day_label,
    parse_callback_data,
    render_birthday_list,
    render_day_detail,
    render_month_keyboard,
    render_week_keyboard,
)
from contextual_calendar.kv_store import KeyValueStore
from contextual_calendar.models import BirthdayRecord


@pytest.fixture
def store(tmp_path: Path) -> BirthdayStore:
    store = BirthdayStore(KeyValueStore(tmp_path / "birthdays.json"))
    store.add(BirthdayRecord(id="alex", name="Alex", date=date(1990, 3, 3), notes="Likes cake"))
    return store


def test_month_keyboard_layout(store: BirthdayStore) -> None:
    markup = render_month_keyboard(date(2024, 3, 10), date(2024, 3, 3), store)
    rows = markup.inline_keyboard

    assert len(rows) == 9
    assert rows[0][0].text == "March 2024"
    assert [button.text for button in rows[1]] == ["S", "M", "T", "W", "T", "F", "S"]
    assert [button.text for button in rows[2]] == [" ", " ", " ", " ", " ", "1", "2"]
    assert rows[3][0].text == "[3]🎂"
    assert rows[3][0].callback_data == "cal:day:2024-03-03"
    assert rows[3][1].text == "4"
    assert [button.callback_data for button in rows[-1]] == [
        "cal:month:2024-02-10",
        "cal:month:2024-03-03",
        "cal:month:2024-04-10",
    ]


def test_week_keyboard_layout(store: BirthdayStore) -> None:
    markup = render_week_keyboard(date(2024, 3, 6), date(2024, 3, 20), store)
    rows = markup.inline_keyboard

    assert len(rows) == 4
    assert rows[0][0].text == "March 6, 2024"
    assert [button.text for button in rows[2]] == ["3🎂", "4", "5", "6", "7", "8", "9"]
    assert rows[-1][0].callback_data == "cal:week:2024-02-28"
    assert rows[-1][2].callback_data == "cal:week:2024-03-13"


def test_day_label_marks_today_and_birthdays() -> None:
    assert day_label(date(2024, 3, 5), date(2024, 3, 1), has_birthday=False) == "5"
    assert day_label(date(2024, 3, 5), date(2024, 3, 5), has_birthday=False) == "[5]"
    assert day_label(date(2024, 3, 5), date(2024, 3, 1), has_birthday=True) == "5🎂"


def test_parse_callback_data() -> None:
    assert parse_callback_data(callback_data("day", date(2024, 3, 3))) == ("day", date(2024, 3, 3))
    assert parse_callback_data("cal:noop") == ("noop", None)

    with pytest.raises(ValueError):
        parse_callback_data("cal:year:2024-03-03")
    with pytest.raises(ValueError):
        parse_callback_data("cal:day:not-a-date")


def test_render_day_detail(store: BirthdayStore) -> None:
    day = date(2024, 3, 3)

    assert render_day_detail(day, store.birthdays_on(day)) == (
        "Birthdays on March 3, 2024\n"
        "\n"
        "Alex\n"
        "   Turns 34 years old\n"
        "   Notes: Likes cake"
    )


def test_render_day_detail_skips_empty_notes_and_unborn_age() -> None:
    record = BirthdayRecord(id="x", name="Kid", date=date(2030, 1, 1))

    assert render_day_detail(date(2024, 1, 1), [record]) == "Birthdays on January 1, 2024\n\nKid"


def test_render_day_detail_without_birthdays() -> None:
    assert render_day_detail(date(2024, 3, 4), []) == "Birthdays on March 4, 2024\n\nNo birthdays on this day."


def test_list_rows_sorted_by_next_occurrence() -> None:
    records = [
        BirthdayRecord(id="1", name="Later", date=date(1980, 12, 25)),
        BirthdayRecord(id="2", name="Today", date=date(2000, 6, 1)),
        BirthdayRecord(id="3", name="Soon", date=date(1990, 6, 10)),
    ]

    rows = build_list_rows(records, date(2024, 6, 1), "mar1")

    assert [row.name for row in rows] == ["Today", "Soon", "Later"]
    assert rows[0] == BirthdayListRow(name="Today", days_until=0, next_date=date(2024, 6, 1), turning_age=24)


def test_render_birthday_list() -> None:
    message = render_birthday_list(
        [
            BirthdayListRow(name="Alex", days_until=0, next_date=date(2024, 3, 3), turning_age=34),
            BirthdayListRow(name="Sam", days_until=12, next_date=date(2024, 3, 15), turning_age=None),
        ]
    )

    assert message == (
        "Tracked birthdays (2)\n"
        "Sorted by soonest:\n"
        "1. Alex\n"
        "   Today | Next 2024-03-03 | Turning 34\n"
        "\n"
        "2. Sam\n"
        "   In 12d | Next 2024-03-15"
    )
