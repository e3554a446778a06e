from datetime import date

import pytest

from tutoring_scheduler.core.exceptions import InvalidFormat, InvalidRange
from tutoring_scheduler.services.time_utils import (
    contains,
    day_name,
    day_of_week,
    overlaps,
    to_minutes,
    validate_range,
)


@pytest.mark.parametrize(
    "value, expected",
    [("00:00", 0), ("09:30", 570), ("9:30", 570), ("23:59", 1439)],
)
def test_to_minutes(value, expected):
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "9:5", "0930", "ab:cd", "", None])
def test_to_minutes_rejects_malformed(value):
    with pytest.raises(InvalidFormat) as exc:
        to_minutes(value)
    assert exc.value.code == "INVALID_FORMAT"


def test_validate_range_accepts_increasing_times():
    validate_range("09:00", "09:01")


@pytest.mark.parametrize("start, end", [("10:00", "10:00"), ("10:00", "09:59")])
def test_validate_range_rejects_empty_or_inverted(start, end):
    with pytest.raises(InvalidRange):
        validate_range(start, end)


def test_contains_allows_touching_boundaries():
    assert contains(540, 780, 540, 600)
    assert contains(540, 780, 720, 780)
    assert contains(540, 780, 540, 780)


def test_contains_rejects_spill_over():
    assert not contains(540, 780, 530, 600)
    assert not contains(540, 780, 720, 790)


def test_back_to_back_intervals_do_not_overlap():
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)


def test_interval_overlaps_itself_and_partial_overlaps():
    assert overlaps(540, 600, 540, 600)
    assert overlaps(540, 600, 570, 630)
    assert overlaps(540, 660, 570, 600)


def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2026, 2, 1)) == 0
    assert day_of_week(date(2026, 2, 2)) == 1
    assert day_of_week(date(2026, 2, 7)) == 6
    assert day_name(1) == "Monday"
