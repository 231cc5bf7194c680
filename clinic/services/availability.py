"""Nominal doctor availability.

Doctors declare when they work as free text such as ``"MON-FRI 10am-6pm"``
or ``"MON, WED, FRI"``. The text is parsed once, when the doctor is saved,
into an :class:`AvailabilityWindow`; request handling only consults the
window. Nothing here looks at bookings: the question answered is "could this
doctor ever be booked then", not "is that slot free".

Day indexes are Sunday-first (0 = Sunday ... 6 = Saturday).
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import FrozenSet, Optional, Tuple, Union

DAY_ABBREVIATIONS = ("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT")
WEEKDAYS = frozenset(range(1, 6))

_DAY = "|".join(DAY_ABBREVIATIONS)
_DAY_RANGE = re.compile(rf"\b({_DAY})\s*-\s*({_DAY})\b")
_DAY_TOKEN = re.compile(rf"\b({_DAY})\b")
_HOUR_RANGE = re.compile(r"\b(\d{1,2})\s*(AM|PM)\s*-\s*(\d{1,2})\s*(AM|PM)\b")


@dataclass(frozen=True)
class AvailabilityWindow:
    days: FrozenSet[int] = frozenset()
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None

    @property
    def has_hours(self) -> bool:
        return self.start_hour is not None and self.end_hour is not None

    def covers_day(self, day_index: int) -> bool:
        return day_index in self.days

    def covers_hour(self, hour: int) -> bool:
        if not self.has_hours:
            return True
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        # Overnight shift, e.g. 10pm-6am
        return hour >= self.start_hour or hour < self.end_hour


def _to_24_hour(hour: int, meridiem: str) -> Optional[int]:
    if not 1 <= hour <= 12:
        return None
    if meridiem == "AM":
        return 0 if hour == 12 else hour
    return 12 if hour == 12 else hour + 12


def parse_days(text: Optional[str]) -> FrozenSet[int]:
    if not text:
        return frozenset()
    upper = text.upper()

    match = _DAY_RANGE.search(upper)
    if match:
        first = DAY_ABBREVIATIONS.index(match.group(1))
        last = DAY_ABBREVIATIONS.index(match.group(2))
        if first <= last:
            return frozenset(range(first, last + 1))
        # Wraps across the end of the week: FRI-MON is Fri, Sat, Sun, Mon
        return frozenset(list(range(first, 7)) + list(range(0, last + 1)))

    tokens = _DAY_TOKEN.findall(upper)
    if tokens:
        return frozenset(DAY_ABBREVIATIONS.index(token) for token in tokens)

    # Glued text such as "XMON-FRIX" has no standalone token
    if "MON-FRI" in upper:
        return WEEKDAYS
    return frozenset()


def parse_hours(text: Optional[str]) -> Optional[Tuple[int, int]]:
    if not text:
        return None
    match = _HOUR_RANGE.search(text.upper())
    if not match:
        return None
    start = _to_24_hour(int(match.group(1)), match.group(2))
    end = _to_24_hour(int(match.group(3)), match.group(4))
    if start is None or end is None:
        return None
    return start, end


def parse_availability(text: Optional[str]) -> AvailabilityWindow:
    hours = parse_hours(text)
    return AvailabilityWindow(
        days=parse_days(text),
        start_hour=hours[0] if hours else None,
        end_hour=hours[1] if hours else None,
    )


def is_day_available(window: AvailabilityWindow, day_index: int) -> bool:
    return window.covers_day(day_index)


def is_hour_in_range(window: AvailabilityWindow, hour: int) -> bool:
    return window.covers_hour(hour)


def is_nominally_available(
    availability: Union[str, AvailabilityWindow, None],
    target: Union[date, datetime],
    check_hour: bool = False,
) -> bool:
    """Whether the declared schedule covers ``target``.

    ``availability`` may be the raw declaration or an already parsed window.
    The hour is only checked when ``check_hour`` is set and ``target``
    carries a time of day.
    """
    if isinstance(availability, AvailabilityWindow):
        window = availability
    else:
        window = parse_availability(availability)

    day = target.date() if isinstance(target, datetime) else target
    if not window.covers_day((day.weekday() + 1) % 7):
        return False
    if check_hour and isinstance(target, datetime):
        return window.covers_hour(target.hour)
    return True
