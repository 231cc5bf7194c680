"""Fixed daily slot table and the date rules that decide bookability.

Dates travel as ``YYYY-MM-DD`` strings. Weekday and past-date checks work on
whole calendar dates (local midnight), never on the current wall-clock time,
so a date does not change status partway through a day.
"""
import re
from datetime import date, datetime
from typing import List, Optional, Tuple

SLOT_TIMES = (
    "10:00-11:00",
    "11:00-12:00",
    "12:00-13:00",
    "13:00-14:00",
    "14:00-15:00",
    "15:00-16:00",
    "16:00-17:00",
    "17:00-18:00",
)
SLOT_COUNT = len(SLOT_TIMES)

# Sunday first, matching the per-weekday capacity layout
WEEKDAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_DATE_FORMAT = re.compile(r"\d{4}-\d{2}-\d{2}")


def slot_times() -> List[Tuple[int, str]]:
    return list(enumerate(SLOT_TIMES))


def slot_label(index: int) -> str:
    return SLOT_TIMES[index]


def is_valid_date_format(value) -> bool:
    """Shape check only; ``2025-13-40`` passes."""
    return isinstance(value, str) and _DATE_FORMAT.fullmatch(value) is not None


def parse_date(value) -> Optional[date]:
    if not is_valid_date_format(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def day_index(day: date) -> int:
    """Weekday index with Sunday = 0."""
    return (day.weekday() + 1) % 7


def is_weekday(value) -> bool:
    day = parse_date(value)
    if day is None:
        return False
    return day.weekday() < 5


def is_past_date(value, today: Optional[date] = None) -> bool:
    day = parse_date(value)
    if day is None:
        return False
    if today is None:
        today = date.today()
    return day < today


def normalize_slot_index(value) -> Optional[int]:
    """Slot as an int, or None when ``value`` is not a whole number in range.

    JSON has a single number type, so ``3.0`` is slot 3 while ``3.5`` is
    rejected.
    """
    # bool is an int subclass; True is not slot 1
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    return value if 0 <= value < SLOT_COUNT else None


def is_valid_slot_index(value) -> bool:
    return normalize_slot_index(value) is not None


def weekday_to_index(name) -> Optional[int]:
    if not isinstance(name, str):
        return None
    normalized = name.strip().lower()
    if normalized not in WEEKDAY_NAMES:
        return None
    return WEEKDAY_NAMES.index(normalized)
