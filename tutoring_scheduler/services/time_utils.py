"""
Wall-clock time helpers. Times are naive "HH:MM" strings local to the teacher;
all comparisons go through minutes-of-day.
"""
from __future__ import annotations

import re
from datetime import date

from tutoring_scheduler.core.exceptions import InvalidFormat, InvalidRange

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def to_minutes(value: str) -> int:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise InvalidFormat(value)
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def validate_range(start: str, end: str) -> None:
    if to_minutes(end) <= to_minutes(start):
        raise InvalidRange(start, end)


def contains(outer_start: int, outer_end: int, inner_start: int, inner_end: int) -> bool:
    # touching boundaries are contained
    return inner_start >= outer_start and inner_end <= outer_end


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # half-open: back-to-back intervals do not overlap
    return a_start < b_end and a_end > b_start


def day_of_week(value: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return value.isoweekday() % 7


def day_name(dow: int) -> str:
    return DAY_NAMES[dow]
