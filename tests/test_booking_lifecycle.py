from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from tutoring_scheduler.core.exceptions import (
    AlreadyConfirmed,
    CapacityExceeded,
    Forbidden,
    InvalidRange,
    NotConfirmed,
    NotFound,
    OutsideAvailability,
    StorageUnavailable,
    StudentDoubleBooked,
    TeacherNotAvailableThatDay,
)
from tutoring_scheduler.core.rbac import Actor, Role
from tutoring_scheduler.models import AuditLog, Booking, BookingStatus
from tutoring_scheduler.services import bookings as booking_service

MONDAY = date(2026, 2, 2)
NEXT_MONDAY = date(2026, 2, 9)
TUESDAY = date(2026, 2, 3)


def _create(db, teacher, student, start="09:00", end="10:00", on=MONDAY):
    return booking_service.create_booking(
        db,
        teacher_id=teacher.id,
        student_id=student.id,
        booking_date=on,
        start=start,
        end=end,
    )


def _student_actor(student):
    return Actor(user_id=student.user_id, roles=frozenset({Role.STUDENT.value}))


class TestCreate:
    def test_end_to_end_capacity_then_cancel(self, db, teacher, make_student, admin):
        s1, s2 = make_student(), make_student()

        a = _create(db, teacher, s1)
        assert a.status == BookingStatus.PENDING.value
        assert a.confirmed is False

        with pytest.raises(CapacityExceeded) as exc:
            _create(db, teacher, s2)
        assert exc.value.details == {"overlapping": 1, "max_capacity": 1}

        booking_service.remove_booking(db, a.id, admin)

        b = _create(db, teacher, s2)
        assert b.status == BookingStatus.PENDING.value

    def test_capacity_allows_n_overlapping_then_rejects(self, db, make_teacher, add_availability, make_student):
        t = make_teacher(max_capacity=2)
        add_availability(t, 1, "09:00", "13:00")
        _create(db, t, make_student(), "09:00", "10:00")
        _create(db, t, make_student(), "09:30", "10:30")

        with pytest.raises(CapacityExceeded):
            _create(db, t, make_student(), "09:45", "10:15")
        # overlaps only one of the two
        _create(db, t, make_student(), "10:00", "11:00")
        _create(db, t, make_student(), "11:00", "12:00")

    def test_back_to_back_is_allowed_at_capacity_one(self, db, teacher, make_student):
        _create(db, teacher, make_student(), "09:00", "10:00")
        _create(db, teacher, make_student(), "10:00", "11:00")
        assert db.query(Booking).count() == 2

    def test_student_cannot_double_book_across_teachers(
        self, db, teacher, make_teacher, add_availability, make_student, admin
    ):
        other = make_teacher(first_name="Luis", max_capacity=5)
        add_availability(other, 1, "08:00", "12:00")
        student = make_student()

        first = _create(db, teacher, student, "09:00", "10:00")
        with pytest.raises(StudentDoubleBooked):
            _create(db, other, student, "09:30", "10:30")

        booking_service.remove_booking(db, first.id, admin)
        _create(db, other, student, "09:30", "10:30")

    def test_not_available_that_day(self, db, teacher, make_student):
        with pytest.raises(TeacherNotAvailableThatDay):
            _create(db, teacher, make_student(), on=TUESDAY)

    def test_outside_availability(self, db, teacher, make_student):
        with pytest.raises(OutsideAvailability) as exc:
            _create(db, teacher, make_student(), "12:30", "13:30")
        assert exc.value.details["available"] == ["09:00-13:00"]

    def test_inverted_range(self, db, teacher, make_student):
        with pytest.raises(InvalidRange):
            _create(db, teacher, make_student(), "10:00", "09:00")

    def test_missing_references(self, db, teacher, make_student):
        student = make_student()
        with pytest.raises(NotFound):
            booking_service.create_booking(
                db, teacher_id=999, student_id=student.id, booking_date=MONDAY, start="09:00", end="10:00"
            )
        with pytest.raises(NotFound):
            booking_service.create_booking(
                db, teacher_id=teacher.id, student_id=999, booking_date=MONDAY, start="09:00", end="10:00"
            )

    def test_rejection_writes_nothing(self, db, teacher, make_student):
        _create(db, teacher, make_student())
        with pytest.raises(CapacityExceeded):
            _create(db, teacher, make_student())
        assert db.query(Booking).count() == 1
        assert db.query(AuditLog).filter(AuditLog.action == "booking_created").count() == 1

    def test_admin_assign_is_confirmed(self, db, teacher, make_student):
        booking = booking_service.admin_assign(
            db,
            teacher_id=teacher.id,
            student_id=make_student().id,
            booking_date=MONDAY,
            start="11:00",
            end="12:00",
        )
        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.confirmed is True

    def test_storage_failure_is_retryable_and_leaves_nothing(self, db, teacher, make_student, monkeypatch):
        student = make_student()

        def _boom():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db, "commit", _boom)
        with pytest.raises(StorageUnavailable):
            _create(db, teacher, student)
        monkeypatch.undo()

        assert db.query(Booking).count() == 0
        # the slot is still bookable once storage is back
        _create(db, teacher, student)


class TestConfirmAndUpdate:
    def test_confirm_then_already_confirmed(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student())
        confirmed = booking_service.confirm_booking(db, booking.id)
        assert confirmed.confirmed is True
        assert confirmed.status == BookingStatus.CONFIRMED.value

        with pytest.raises(AlreadyConfirmed):
            booking_service.confirm_booking(db, booking.id)

    def test_confirm_missing(self, db):
        with pytest.raises(NotFound):
            booking_service.confirm_booking(db, 42)

    def test_update_resets_confirmation(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student())
        booking_service.confirm_booking(db, booking.id)

        updated = booking_service.update_booking(db, booking.id, start="09:30", end="10:30")
        assert (updated.start_time, updated.end_time) == ("09:30", "10:30")
        assert updated.confirmed is False
        assert updated.status == BookingStatus.PENDING.value

    def test_update_with_identical_values_still_resets(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student())
        booking_service.confirm_booking(db, booking.id)

        updated = booking_service.update_booking(db, booking.id, teacher_id=teacher.id)
        assert updated.status == BookingStatus.PENDING.value

    def test_update_does_not_conflict_with_itself(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student(), "09:00", "10:00")
        updated = booking_service.update_booking(db, booking.id, end="10:30")
        assert updated.end_time == "10:30"

    def test_update_runs_full_pipeline_on_merged_values(self, db, teacher, make_student):
        _create(db, teacher, make_student(), "10:00", "11:00")
        booking = _create(db, teacher, make_student(), "09:00", "10:00")

        with pytest.raises(CapacityExceeded):
            booking_service.update_booking(db, booking.id, start="09:30", end="10:30")
        with pytest.raises(OutsideAvailability):
            booking_service.update_booking(db, booking.id, start="12:30", end="13:30")
        with pytest.raises(TeacherNotAvailableThatDay):
            booking_service.update_booking(db, booking.id, booking_date=TUESDAY)

        db.refresh(booking)
        assert (booking.date, booking.start_time, booking.end_time) == (MONDAY, "09:00", "10:00")

    def test_transfer_to_other_teacher(self, db, teacher, make_teacher, add_availability, make_student):
        other = make_teacher(first_name="Luis")
        add_availability(other, 1, "09:00", "10:00")
        booking = _create(db, teacher, make_student())

        moved = booking_service.update_booking(db, booking.id, teacher_id=other.id)
        assert moved.teacher_id == other.id

        with pytest.raises(NotFound):
            booking_service.update_booking(db, booking.id, teacher_id=999)


class TestAttendance:
    def test_requires_confirmed(self, db, teacher, make_student, admin):
        booking = _create(db, teacher, make_student())
        with pytest.raises(NotConfirmed):
            booking_service.mark_attendance(db, booking.id, "PRESENT", admin)

    def test_assigned_teacher_can_mark(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student())
        booking_service.confirm_booking(db, booking.id)
        actor = Actor(user_id="teacher.ana", roles=frozenset({Role.TEACHER.value}))

        marked = booking_service.mark_attendance(db, booking.id, "ABSENT", actor, notes="sick")
        assert marked.attendance == "ABSENT"
        assert marked.attendance_by == "teacher.ana"
        assert marked.attendance_at is not None
        assert marked.notes == "sick"

    def test_other_teacher_is_forbidden(self, db, teacher, make_student):
        booking = _create(db, teacher, make_student())
        booking_service.confirm_booking(db, booking.id)
        actor = Actor(user_id="teacher.other", roles=frozenset({Role.TEACHER.value}))

        with pytest.raises(Forbidden):
            booking_service.mark_attendance(db, booking.id, "PRESENT", actor)


class TestRemoveAndList:
    def test_student_can_remove_only_own(self, db, teacher, make_student):
        owner = make_student(user_id="student.one")
        intruder = make_student(user_id="student.two")
        booking = _create(db, teacher, owner)

        with pytest.raises(Forbidden):
            booking_service.remove_booking(db, booking.id, _student_actor(intruder))

        removed = booking_service.remove_booking(db, booking.id, _student_actor(owner))
        assert removed["id"] == booking.id
        assert db.get(Booking, booking.id) is None

    def test_remove_missing(self, db, admin):
        with pytest.raises(NotFound):
            booking_service.remove_booking(db, 7, admin)

    def test_list_scopes_to_student_and_teacher_roles(
        self, db, teacher, make_teacher, add_availability, make_student, admin
    ):
        # one person who is both a student and a teacher
        dual_teacher = make_teacher(first_name="Dual", user_id="dual", max_capacity=3)
        add_availability(dual_teacher, 1, "14:00", "18:00")
        dual_student = make_student(user_id="dual")
        other = make_student(user_id="other")

        _create(db, teacher, dual_student, "09:00", "10:00")
        _create(db, dual_teacher, other, "14:00", "15:00")
        _create(db, teacher, other, "11:00", "12:00")

        dual = Actor(user_id="dual", roles=frozenset({Role.STUDENT.value, Role.TEACHER.value}))
        page = booking_service.list_bookings(db, dual)
        assert page.total == 2

        assert booking_service.list_bookings(db, admin).total == 3

        stranger = Actor(user_id="nobody", roles=frozenset({Role.STUDENT.value}))
        empty = booking_service.list_bookings(db, stranger)
        assert empty.total == 0
        assert empty.items == []

    def test_list_filters_and_pagination(self, db, teacher, make_student, admin):
        for start, end in [("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00")]:
            _create(db, teacher, make_student(), start, end)
        _create(db, teacher, make_student(), on=NEXT_MONDAY)

        page = booking_service.list_bookings(db, admin, page=1, page_size=2)
        assert page.total == 4
        assert len(page.items) == 2
        assert page.items[0].date == NEXT_MONDAY

        feb_2 = booking_service.list_bookings(db, admin, date_from=MONDAY, date_to=MONDAY)
        assert feb_2.total == 3

        confirmed = booking_service.list_bookings(db, admin, status="CONFIRMED")
        assert confirmed.total == 0
