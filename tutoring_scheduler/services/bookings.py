"""
Single-booking lifecycle: create, admin-assign, confirm, reschedule/transfer,
attendance, removal and listing.

Every state-changing path runs the same legality pipeline (range, weekday
availability, conflicts) under ``teacher_day_lock`` and commits once, so a
rejected request never leaves a partial write behind.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from tutoring_scheduler.core.exceptions import (
    AlreadyConfirmed,
    Forbidden,
    NotConfirmed,
    NotFound,
)
from tutoring_scheduler.core.locks import teacher_day_lock
from tutoring_scheduler.core.rbac import Actor
from tutoring_scheduler.db import commit_or_raise
from tutoring_scheduler.models import (
    AttendanceStatus,
    Booking,
    BookingStatus,
    Student,
    Subject,
    Teacher,
)
from tutoring_scheduler.services import audit
from tutoring_scheduler.services import conflict_detector
from tutoring_scheduler.services.availability_index import ensure_within_availability
from tutoring_scheduler.services.rabbitmq_client import publish_booking_event
from tutoring_scheduler.services.time_utils import day_of_week, validate_range

logger = logging.getLogger(__name__)


@dataclass
class BookingPage:
    items: list[Booking]
    total: int
    page: int
    page_size: int


# =====================
# Lookups
# =====================

def get_teacher(db: Session, teacher_id: int) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFound("Teacher", teacher_id)
    return teacher


def get_student(db: Session, student_id: int) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFound("Student", student_id)
    return student


def get_subject(db: Session, subject_id: int | None) -> Subject | None:
    if subject_id is None:
        return None
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise NotFound("Subject", subject_id)
    return subject


def get_booking(db: Session, booking_id: int, actor: Actor | None = None) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking", booking_id)
    if actor is not None and not actor.is_admin and not _is_party(booking, actor):
        raise Forbidden("You can only view your own bookings")
    return booking


def _is_party(booking: Booking, actor: Actor) -> bool:
    return actor.user_id in {
        booking.student.user_id if booking.student else None,
        booking.teacher.user_id if booking.teacher else None,
    }


def snapshot(booking: Booking) -> dict[str, Any]:
    return {c.name: getattr(booking, c.name) for c in Booking.__table__.columns}


def _event_payload(booking: Booking) -> dict[str, Any]:
    return {
        "booking_id": booking.id,
        "teacher_id": booking.teacher_id,
        "student_id": booking.student_id,
        "date": booking.date.isoformat(),
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "status": booking.status,
    }


# =====================
# Legality pipeline
# =====================

def check_legality(
    db: Session,
    teacher: Teacher,
    student_id: int,
    booking_date: date,
    start: str,
    end: str,
    exclude_booking_id: int | None = None,
) -> None:
    """Raise the first violation found; return silently when the slot is bookable."""
    validate_range(start, end)
    ensure_within_availability(db, teacher.id, day_of_week(booking_date), start, end)
    result = conflict_detector.check(
        db,
        teacher.id,
        booking_date,
        start,
        end,
        student_id,
        teacher.max_capacity,
        exclude_booking_id=exclude_booking_id,
    )
    result.raise_for_conflict()


def _create(
    db: Session,
    *,
    teacher_id: int,
    student_id: int,
    booking_date: date,
    start: str,
    end: str,
    subject_id: int | None,
    confirmed: bool,
    actor_user_id: str,
) -> Booking:
    teacher = get_teacher(db, teacher_id)
    get_student(db, student_id)
    get_subject(db, subject_id)
    validate_range(start, end)

    status = BookingStatus.CONFIRMED if confirmed else BookingStatus.PENDING
    action = "booking_assigned" if confirmed else "booking_created"

    with teacher_day_lock(db, teacher.id, [booking_date], student_ids=[student_id]):
        check_legality(db, teacher, student_id, booking_date, start, end)

        booking = Booking(
            teacher_id=teacher.id,
            student_id=student_id,
            subject_id=subject_id,
            date=booking_date,
            start_time=start,
            end_time=end,
            status=status.value,
            confirmed=confirmed,
        )
        db.add(booking)
        db.flush()
        audit.log_action(
            db,
            username=actor_user_id,
            action=action,
            resource_type="booking",
            resource_id=booking.id,
            details=f"teacher {teacher.id}, student {student_id}, {booking_date} {start}-{end}",
        )
        commit_or_raise(db, action)

    db.refresh(booking)
    logger.info(
        "Booking %s %s: teacher %s student %s %s %s-%s",
        booking.id, status.value, teacher.id, student_id, booking_date, start, end,
    )
    publish_booking_event(action, _event_payload(booking))
    return booking


# =====================
# Operations
# =====================

def create_booking(
    db: Session,
    *,
    teacher_id: int,
    student_id: int,
    booking_date: date,
    start: str,
    end: str,
    subject_id: int | None = None,
    actor_user_id: str = "system",
) -> Booking:
    """New booking awaiting approval (PENDING)."""
    return _create(
        db,
        teacher_id=teacher_id,
        student_id=student_id,
        booking_date=booking_date,
        start=start,
        end=end,
        subject_id=subject_id,
        confirmed=False,
        actor_user_id=actor_user_id,
    )


def admin_assign(
    db: Session,
    *,
    teacher_id: int,
    student_id: int,
    booking_date: date,
    start: str,
    end: str,
    subject_id: int | None = None,
    actor_user_id: str = "system",
) -> Booking:
    """Administrator-entered booking: same checks, committed as CONFIRMED."""
    return _create(
        db,
        teacher_id=teacher_id,
        student_id=student_id,
        booking_date=booking_date,
        start=start,
        end=end,
        subject_id=subject_id,
        confirmed=True,
        actor_user_id=actor_user_id,
    )


def confirm_booking(db: Session, booking_id: int, actor_user_id: str = "system") -> Booking:
    booking = get_booking(db, booking_id)
    if booking.confirmed:
        raise AlreadyConfirmed(booking.id)

    booking.confirmed = True
    booking.status = BookingStatus.CONFIRMED.value
    audit.log_action(
        db,
        username=actor_user_id,
        action="booking_confirmed",
        resource_type="booking",
        resource_id=booking.id,
    )
    commit_or_raise(db, "booking_confirmed")
    db.refresh(booking)

    publish_booking_event("booking_confirmed", _event_payload(booking))
    return booking


def update_booking(
    db: Session,
    booking_id: int,
    *,
    teacher_id: int | None = None,
    booking_date: date | None = None,
    start: str | None = None,
    end: str | None = None,
    actor_user_id: str = "system",
) -> Booking:
    """
    Transfer to another teacher and/or reschedule. The merged values go
    through the full legality pipeline excluding the booking itself, and
    any successful update revokes a prior confirmation.
    """
    booking = get_booking(db, booking_id)

    new_teacher_id = teacher_id if teacher_id is not None else booking.teacher_id
    new_date = booking_date if booking_date is not None else booking.date
    new_start = start if start is not None else booking.start_time
    new_end = end if end is not None else booking.end_time

    teacher = get_teacher(db, new_teacher_id)
    validate_range(new_start, new_end)

    with teacher_day_lock(db, teacher.id, [new_date], student_ids=[booking.student_id]):
        check_legality(
            db,
            teacher,
            booking.student_id,
            new_date,
            new_start,
            new_end,
            exclude_booking_id=booking.id,
        )

        previous = f"teacher {booking.teacher_id}, {booking.date} {booking.start_time}-{booking.end_time}"
        booking.teacher_id = teacher.id
        booking.date = new_date
        booking.start_time = new_start
        booking.end_time = new_end
        # re-approval is required after any change
        booking.confirmed = False
        booking.status = BookingStatus.PENDING.value

        audit.log_action(
            db,
            username=actor_user_id,
            action="booking_updated",
            resource_type="booking",
            resource_id=booking.id,
            details=f"{previous} -> teacher {teacher.id}, {new_date} {new_start}-{new_end}",
        )
        commit_or_raise(db, "booking_updated")

    db.refresh(booking)
    publish_booking_event("booking_updated", _event_payload(booking))
    return booking


def mark_attendance(
    db: Session,
    booking_id: int,
    attendance: AttendanceStatus | str,
    actor: Actor,
    notes: str | None = None,
) -> Booking:
    booking = get_booking(db, booking_id)
    if booking.status != BookingStatus.CONFIRMED.value:
        raise NotConfirmed(booking.id, booking.status)

    assigned_teacher = booking.teacher.user_id if booking.teacher else None
    if not actor.is_admin and actor.user_id != assigned_teacher:
        raise Forbidden("Only an administrator or the assigned teacher can mark attendance")

    booking.attendance = AttendanceStatus(attendance).value
    booking.attendance_at = datetime.now()
    booking.attendance_by = actor.user_id
    if notes is not None:
        booking.notes = notes

    audit.log_action(
        db,
        username=actor.user_id,
        action="attendance_marked",
        resource_type="booking",
        resource_id=booking.id,
        details=booking.attendance,
    )
    commit_or_raise(db, "attendance_marked")
    db.refresh(booking)
    return booking


def remove_booking(db: Session, booking_id: int, actor: Actor) -> dict[str, Any]:
    """Cancel by deletion. Returns the removed booking's fields."""
    booking = get_booking(db, booking_id)

    if not actor.is_admin:
        owner = booking.student.user_id if booking.student else None
        if owner != actor.user_id:
            raise Forbidden("You can only delete your own bookings")

    removed = snapshot(booking)
    db.delete(booking)
    audit.log_action(
        db,
        username=actor.user_id,
        action="booking_cancelled",
        resource_type="booking",
        resource_id=removed["id"],
        details=f"teacher {removed['teacher_id']}, {removed['date']} {removed['start_time']}-{removed['end_time']}",
    )
    commit_or_raise(db, "booking_cancelled")

    logger.info("Booking %s cancelled by %s", removed["id"], actor.user_id)
    publish_booking_event(
        "booking_cancelled",
        {**removed, "date": removed["date"].isoformat(), "status": BookingStatus.CANCELLED.value},
    )
    return removed


def list_bookings(
    db: Session,
    actor: Actor,
    *,
    page: int = 1,
    page_size: int = 20,
    date_from: date | None = None,
    date_to: date | None = None,
    teacher_id: int | None = None,
    status: BookingStatus | str | None = None,
) -> BookingPage:
    """
    Administrators see every booking; everyone else sees the bookings where
    they are the student or the assigned teacher (both, when they hold both).
    """
    query = db.query(Booking)

    if not actor.is_admin:
        student = db.query(Student).filter(Student.user_id == actor.user_id).first()
        teacher = db.query(Teacher).filter(Teacher.user_id == actor.user_id).first()
        scopes = []
        if student is not None:
            scopes.append(Booking.student_id == student.id)
        if teacher is not None:
            scopes.append(Booking.teacher_id == teacher.id)
        if not scopes:
            return BookingPage(items=[], total=0, page=page, page_size=page_size)
        query = query.filter(or_(*scopes))

    if date_from is not None:
        query = query.filter(Booking.date >= date_from)
    if date_to is not None:
        query = query.filter(Booking.date <= date_to)
    if teacher_id is not None:
        query = query.filter(Booking.teacher_id == teacher_id)
    if status is not None:
        query = query.filter(Booking.status == BookingStatus(status).value)

    total = query.count()
    items = (
        query.order_by(Booking.date.desc(), Booking.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return BookingPage(items=items, total=total, page=page, page_size=page_size)
