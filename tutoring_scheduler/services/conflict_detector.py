"""
Conflict detection for a candidate booking interval.

The check runs in two phases that the recurrence batch reuses separately:
fetching the active bookings that could collide (one query per teacher and
one per student, across any number of dates), and evaluating a single date
against those pre-fetched rows.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from tutoring_scheduler.core.exceptions import CapacityExceeded, StudentDoubleBooked
from tutoring_scheduler.models import Booking, BookingStatus
from tutoring_scheduler.services.time_utils import overlaps, to_minutes

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


@dataclass
class ConflictResult:
    ok: bool
    overlapping_count: int = 0
    max_capacity: int = 0
    student_conflict_ids: list[int] = field(default_factory=list)
    reason: str | None = None
    error: Exception | None = None

    def raise_for_conflict(self) -> None:
        if self.error is not None:
            raise self.error


def fetch_active_bookings(
    db: Session,
    dates: Iterable[date],
    *,
    teacher_id: int | None = None,
    student_id: int | None = None,
    exclude_booking_id: int | None = None,
) -> list[Booking]:
    """Non-cancelled bookings on any of ``dates`` for a teacher and/or student."""
    dates = list(dates)
    if not dates:
        return []
    query = db.query(Booking).filter(
        Booking.date.in_(dates),
        Booking.status.in_(ACTIVE_STATUSES),
    )
    if teacher_id is not None:
        query = query.filter(Booking.teacher_id == teacher_id)
    if student_id is not None:
        query = query.filter(Booking.student_id == student_id)
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.all()


def partition_by_date(bookings: Iterable[Booking]) -> dict[date, list[Booking]]:
    by_date: dict[date, list[Booking]] = defaultdict(list)
    for b in bookings:
        by_date[b.date].append(b)
    return by_date


def _overlapping(bookings: Iterable[Booking], start_min: int, end_min: int) -> list[Booking]:
    return [
        b for b in bookings
        if overlaps(start_min, end_min, to_minutes(b.start_time), to_minutes(b.end_time))
    ]


def evaluate(
    teacher_bookings: Iterable[Booking],
    student_bookings: Iterable[Booking],
    start: str,
    end: str,
    student_id: int,
    max_capacity: int,
) -> ConflictResult:
    """
    Decide whether [start, end) is bookable given the active bookings of the
    teacher and of the student on one date. Student double-booking is checked
    before capacity.
    """
    start_min, end_min = to_minutes(start), to_minutes(end)

    teacher_overlaps = _overlapping(teacher_bookings, start_min, end_min)
    student_overlaps = {
        b.id: b
        for b in _overlapping(student_bookings, start_min, end_min)
    }
    for b in teacher_overlaps:
        if b.student_id == student_id:
            student_overlaps.setdefault(b.id, b)

    if student_overlaps:
        ids = sorted(student_overlaps)
        return ConflictResult(
            ok=False,
            overlapping_count=len(teacher_overlaps),
            max_capacity=max_capacity,
            student_conflict_ids=ids,
            reason="Student already has an overlapping booking",
            error=StudentDoubleBooked(student_id, ids),
        )

    if len(teacher_overlaps) >= max_capacity:
        return ConflictResult(
            ok=False,
            overlapping_count=len(teacher_overlaps),
            max_capacity=max_capacity,
            reason=f"Teacher is fully booked for this time slot ({len(teacher_overlaps)}/{max_capacity})",
            error=CapacityExceeded(len(teacher_overlaps), max_capacity),
        )

    return ConflictResult(
        ok=True,
        overlapping_count=len(teacher_overlaps),
        max_capacity=max_capacity,
    )


def check(
    db: Session,
    teacher_id: int,
    booking_date: date,
    start: str,
    end: str,
    student_id: int,
    max_capacity: int,
    exclude_booking_id: int | None = None,
) -> ConflictResult:
    teacher_bookings = fetch_active_bookings(
        db, [booking_date], teacher_id=teacher_id, exclude_booking_id=exclude_booking_id
    )
    student_bookings = fetch_active_bookings(
        db, [booking_date], student_id=student_id, exclude_booking_id=exclude_booking_id
    )
    result = evaluate(teacher_bookings, student_bookings, start, end, student_id, max_capacity)
    if not result.ok:
        logger.info(
            "Conflict for teacher %s on %s %s-%s: %s",
            teacher_id, booking_date, start, end, result.reason,
        )
    return result
