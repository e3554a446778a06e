from datetime import date
from types import SimpleNamespace

from tutoring_scheduler.core.exceptions import CapacityExceeded, StudentDoubleBooked
from tutoring_scheduler.models import Booking, BookingStatus
from tutoring_scheduler.services import conflict_detector

MONDAY = date(2026, 2, 2)


def _b(booking_id, student_id, start, end):
    return SimpleNamespace(id=booking_id, student_id=student_id, start_time=start, end_time=end)


def test_free_slot_is_ok():
    result = conflict_detector.evaluate([], [], "09:00", "10:00", student_id=1, max_capacity=1)
    assert result.ok
    assert result.overlapping_count == 0
    result.raise_for_conflict()


def test_capacity_counts_partial_overlaps():
    existing = [_b(1, 10, "09:00", "10:00"), _b(2, 11, "09:30", "10:30")]
    result = conflict_detector.evaluate(existing, [], "09:45", "10:15", student_id=12, max_capacity=2)
    assert not result.ok
    assert isinstance(result.error, CapacityExceeded)
    assert result.error.details == {"overlapping": 2, "max_capacity": 2}


def test_back_to_back_bookings_do_not_count():
    existing = [_b(1, 10, "08:00", "09:00"), _b(2, 11, "10:00", "11:00")]
    result = conflict_detector.evaluate(existing, [], "09:00", "10:00", student_id=12, max_capacity=1)
    assert result.ok


def test_student_double_booking_reported_before_capacity():
    existing = [_b(1, 10, "09:00", "10:00")]
    result = conflict_detector.evaluate(existing, [], "09:30", "10:30", student_id=10, max_capacity=1)
    assert isinstance(result.error, StudentDoubleBooked)
    assert result.student_conflict_ids == [1]


def test_student_booking_with_other_teacher_counts():
    elsewhere = [_b(7, 10, "09:00", "10:00")]
    result = conflict_detector.evaluate([], elsewhere, "09:30", "10:00", student_id=10, max_capacity=3)
    assert isinstance(result.error, StudentDoubleBooked)


def test_check_ignores_cancelled_and_excluded(db, teacher, make_student):
    s1, s2 = make_student(), make_student()
    cancelled = Booking(
        teacher_id=teacher.id, student_id=s1.id, date=MONDAY,
        start_time="09:00", end_time="10:00", status=BookingStatus.CANCELLED.value,
    )
    own = Booking(
        teacher_id=teacher.id, student_id=s2.id, date=MONDAY,
        start_time="09:00", end_time="10:00", status=BookingStatus.PENDING.value,
    )
    db.add_all([cancelled, own])
    db.commit()

    blocked = conflict_detector.check(db, teacher.id, MONDAY, "09:00", "10:00", s1.id, 1)
    assert isinstance(blocked.error, CapacityExceeded)

    rescheduled = conflict_detector.check(
        db, teacher.id, MONDAY, "09:30", "10:30", s2.id, 1, exclude_booking_id=own.id
    )
    assert rescheduled.ok
