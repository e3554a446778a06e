import pytest

from tutoring_scheduler.core.exceptions import OutsideAvailability, TeacherNotAvailableThatDay
from tutoring_scheduler.services.availability_index import (
    ensure_within_availability,
    get_slots,
    is_within_availability,
)


def test_no_slots_that_day_is_unavailable(db, teacher):
    assert is_within_availability(db, teacher.id, 2, "09:00", "10:00") is False


def test_inside_single_slot_including_boundaries(db, teacher):
    assert is_within_availability(db, teacher.id, 1, "09:00", "10:00")
    assert is_within_availability(db, teacher.id, 1, "12:00", "13:00")
    assert not is_within_availability(db, teacher.id, 1, "12:30", "13:30")


def test_slots_are_a_union_not_merged(db, make_teacher, add_availability):
    t = make_teacher()
    add_availability(t, 3, "14:00", "16:00")
    add_availability(t, 3, "09:00", "11:00")

    assert is_within_availability(db, t.id, 3, "10:00", "11:00")
    assert is_within_availability(db, t.id, 3, "15:00", "16:00")
    # spans the gap between the two windows
    assert not is_within_availability(db, t.id, 3, "10:30", "14:30")
    assert [s.start_time for s in get_slots(db, t.id, 3)] == ["09:00", "14:00"]


def test_ensure_raises_not_available_that_day(db, teacher):
    with pytest.raises(TeacherNotAvailableThatDay) as exc:
        ensure_within_availability(db, teacher.id, 5, "09:00", "10:00")
    assert exc.value.details["day_of_week"] == 5
    assert "Friday" in exc.value.message


def test_ensure_outside_lists_windows(db, teacher, add_availability):
    add_availability(teacher, 1, "15:00", "17:00")
    with pytest.raises(OutsideAvailability) as exc:
        ensure_within_availability(db, teacher.id, 1, "13:00", "14:00")
    assert exc.value.details["available"] == ["09:00-13:00", "15:00-17:00"]
