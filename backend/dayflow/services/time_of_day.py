"""Wall-clock time parsing, formatting and interval helpers."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Optional

from dayflow.core.errors import ParseError

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = r"\d{1,2}:\d{2}(?:\s*[AaPp]\.?[Mm]\.?)?"
_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(?:([AaPp])\.?[Mm]\.?)?\s*$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(hours?|hrs?|h|minutes?|mins?|m)(?![a-z])", re.IGNORECASE)


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """A same-day wall-clock time; ordering follows minutes since midnight."""

    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ParseError(f"Time out of range: {self.hour:02d}:{self.minute:02d}")

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    @classmethod
    def from_minutes(cls, total: int) -> "TimeOfDay":
        if not 0 <= total < MINUTES_PER_DAY:
            raise ParseError(f"Minute offset {total} falls outside a single day")
        return cls(total // 60, total % 60)

    @classmethod
    def from_time(cls, value: time) -> "TimeOfDay":
        return cls(value.hour, value.minute)

    def format(self) -> str:
        return format_time_of_day(self)

    def __str__(self) -> str:
        return self.format()


NOON = TimeOfDay(12, 0)


def parse_time_of_day(text: str) -> TimeOfDay:
    """
    Parse "h:mm AM/PM" or 24-hour "HH:MM" text.

    The meridiem is case-insensitive; "12 AM" is midnight and "12 PM" is noon.
    Without a meridiem the hour is taken literally as a 24-hour value.
    Anything else, including a missing minute field, raises ParseError.
    """
    if not isinstance(text, str):
        raise ParseError(f"Expected a time string, got {type(text).__name__}")
    match = _TIME_RE.match(text)
    if not match:
        raise ParseError(f"Unrecognized time: {text!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    meridiem = match.group(3)
    if minute > 59:
        raise ParseError(f"Minute out of range in {text!r}")

    if meridiem:
        if not 1 <= hour <= 12:
            raise ParseError(f"Hour out of range for 12-hour clock in {text!r}")
        hour = hour % 12
        if meridiem.lower() == "p":
            hour += 12
    elif hour > 23:
        raise ParseError(f"Hour out of range in {text!r}")

    return TimeOfDay(hour, minute)


def format_time_of_day(value: TimeOfDay) -> str:
    """Render canonical 12-hour text, e.g. ``9:05 AM``."""
    suffix = "AM" if value.hour < 12 else "PM"
    display_hour = value.hour % 12 or 12
    return f"{display_hour}:{value.minute:02d} {suffix}"


def is_within(point: TimeOfDay, start: TimeOfDay, end: TimeOfDay) -> bool:
    """Half-open membership test; ranges that cross midnight contain nothing."""
    return start.minutes <= point.minutes < end.minutes


def anchor_to_day(value: TimeOfDay, day: date, tz: Optional[tzinfo] = None) -> datetime:
    """Attach a calendar date (and optional zone) to a time of day."""
    return datetime.combine(day, time(value.hour, value.minute), tzinfo=tz)


def parse_duration_hint(text: Optional[str]) -> Optional[int]:
    """Best-effort minutes from hints like "1.5 hours" or "1 hr 30 min"."""
    if not text:
        return None
    total = 0.0
    matched = False
    for amount, unit in _DURATION_PART_RE.findall(text):
        matched = True
        value = float(amount)
        total += value * 60 if unit.lower().startswith("h") else value
    if not matched:
        return None
    return int(round(total))


def describe_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes" if minutes != 1 else "1 minute"
    hours = minutes / 60
    if hours == 1:
        return "1 hour"
    if minutes % 30 == 0:
        return f"{hours:g} hours"
    whole, rest = divmod(minutes, 60)
    hour_label = "hour" if whole == 1 else "hours"
    return f"{whole} {hour_label} {rest} minutes"
