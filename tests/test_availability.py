from datetime import date, datetime

import pytest

from clinic.services.availability import (
    AvailabilityWindow,
    is_day_available,
    is_hour_in_range,
    is_nominally_available,
    parse_availability,
    parse_days,
    parse_hours,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("MON-FRI 10am-6pm", {1, 2, 3, 4, 5}),
        ("mon - wed", {1, 2, 3}),
        ("FRI-MON", {5, 6, 0, 1}),
        ("MON, WED, FRI", {1, 3, 5}),
        ("SAT SUN 9am-1pm", {6, 0}),
        ("XMON-FRIX", {1, 2, 3, 4, 5}),
        ("weekends", set()),
        ("", set()),
        (None, set()),
    ],
)
def test_parse_days(text, expected) -> None:
    assert parse_days(text) == frozenset(expected)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("MON-FRI 10am-6pm", (10, 18)),
        ("MON-FRI 9 AM - 5 PM", (9, 17)),
        ("TUE 12am-12pm", (0, 12)),
        ("THU 10pm-6am", (22, 6)),
        ("MON-FRI 13pm-6pm", None),
        ("MON-FRI", None),
        (None, None),
    ],
)
def test_parse_hours(text, expected) -> None:
    assert parse_hours(text) == expected


def test_parse_availability_builds_window() -> None:
    window = parse_availability("MON-FRI 10am-6pm")

    assert window == AvailabilityWindow(days=frozenset({1, 2, 3, 4, 5}), start_hour=10, end_hour=18)
    assert window.has_hours


def test_hour_range_is_half_open() -> None:
    window = parse_availability("MON-FRI 10am-6pm")

    assert is_hour_in_range(window, 10)
    assert is_hour_in_range(window, 17)
    assert not is_hour_in_range(window, 18)
    assert not is_hour_in_range(window, 9)


def test_overnight_hours_wrap_past_midnight() -> None:
    window = parse_availability("MON-SUN 10pm-6am")

    assert is_hour_in_range(window, 23)
    assert is_hour_in_range(window, 2)
    assert not is_hour_in_range(window, 6)
    assert not is_hour_in_range(window, 12)


def test_window_without_hours_covers_every_hour() -> None:
    window = parse_availability("MON, WED")

    assert not window.has_hours
    assert is_hour_in_range(window, 3)
    assert is_day_available(window, 1)
    assert not is_day_available(window, 2)


def test_is_nominally_available_checks_weekday() -> None:
    assert is_nominally_available("MON-FRI 10am-6pm", date(2030, 1, 7))  # Monday
    assert not is_nominally_available("MON-FRI 10am-6pm", date(2030, 1, 5))  # Saturday


def test_is_nominally_available_checks_hour_only_when_asked() -> None:
    evening = datetime(2030, 1, 7, 20, 0)

    assert is_nominally_available("MON-FRI 10am-6pm", evening)
    assert not is_nominally_available("MON-FRI 10am-6pm", evening, check_hour=True)
    assert is_nominally_available("MON-FRI 10am-6pm", datetime(2030, 1, 7, 11, 30), check_hour=True)


def test_is_nominally_available_accepts_parsed_window() -> None:
    window = parse_availability("TUE")

    assert is_nominally_available(window, date(2030, 1, 8))
    assert not is_nominally_available(window, date(2030, 1, 9))


def test_unparseable_declaration_is_never_available() -> None:
    assert not is_nominally_available("whenever", date(2030, 1, 7))
    assert not is_nominally_available(None, date(2030, 1, 7))
