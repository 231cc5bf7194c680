from datetime import date

import pytest

from clinic.services.slot_calendar import (
    SLOT_COUNT,
    day_index,
    is_past_date,
    is_valid_date_format,
    is_valid_slot_index,
    is_weekday,
    normalize_slot_index,
    parse_date,
    slot_label,
    slot_times,
    weekday_to_index,
)


def test_slot_table_has_eight_hourly_slots_in_order() -> None:
    slots = slot_times()

    assert SLOT_COUNT == 8
    assert [index for index, _ in slots] == list(range(8))
    assert slots[0] == (0, "10:00-11:00")
    assert slots[-1] == (7, "17:00-18:00")


def test_slot_label_matches_table() -> None:
    assert slot_label(3) == "13:00-14:00"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2030-01-07", True),
        ("2030-13-40", True),
        ("2030-1-7", False),
        ("07-01-2030", False),
        ("2030-01-07T10:00", False),
        ("", False),
        (None, False),
        (20300107, False),
    ],
)
def test_is_valid_date_format_checks_shape_only(value, expected) -> None:
    assert is_valid_date_format(value) is expected


def test_parse_date_rejects_impossible_calendar_dates() -> None:
    assert parse_date("2030-01-07") == date(2030, 1, 7)
    assert parse_date("2030-02-30") is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2030-01-07", True),   # Monday
        ("2030-01-11", True),   # Friday
        ("2030-01-05", False),  # Saturday
        ("2030-01-06", False),  # Sunday
        ("2030-02-30", False),
        ("not-a-date", False),
    ],
)
def test_is_weekday(value, expected) -> None:
    assert is_weekday(value) is expected


def test_is_past_date_compares_whole_days() -> None:
    today = date(2030, 1, 9)

    assert is_past_date("2030-01-08", today=today) is True
    assert is_past_date("2030-01-09", today=today) is False
    assert is_past_date("2030-01-10", today=today) is False
    assert is_past_date("garbage", today=today) is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, True),
        (7, True),
        (-1, False),
        (8, False),
        ("3", False),
        (3.0, True),
        (3.5, False),
        (8.0, False),
        (True, False),
        (None, False),
    ],
)
def test_is_valid_slot_index(value, expected) -> None:
    assert is_valid_slot_index(value) is expected


def test_normalize_slot_index_returns_whole_floats_as_int() -> None:
    slot = normalize_slot_index(3.0)
    assert slot == 3
    assert type(slot) is int
    assert normalize_slot_index(2) == 2
    assert normalize_slot_index(2.5) is None
    assert normalize_slot_index(False) is None


def test_day_index_counts_from_sunday() -> None:
    assert day_index(date(2030, 1, 6)) == 0  # Sunday
    assert day_index(date(2030, 1, 7)) == 1  # Monday
    assert day_index(date(2030, 1, 12)) == 6  # Saturday


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("sunday", 0),
        ("Monday", 1),
        ("  FRIDAY ", 5),
        ("mon", None),
        ("", None),
        (None, None),
        (1, None),
    ],
)
def test_weekday_to_index(name, expected) -> None:
    assert weekday_to_index(name) == expected
