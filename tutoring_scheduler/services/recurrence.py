"""
Monthly recurrence: expand "same weekday every week of one calendar month"
into concrete bookings, with per-date partial success.

The work is split into an invariant phase, done once per batch (references,
time range, weekday availability, one booking fetch for every candidate
date), and a per-date phase that only evaluates conflicts in memory.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from tutoring_scheduler.core.exceptions import NoMatchingDates, NotFound, ValidationException
from tutoring_scheduler.core.locks import teacher_day_lock
from tutoring_scheduler.db import commit_or_raise
from tutoring_scheduler.models import Booking, BookingStatus, RecurringGroup
from tutoring_scheduler.services import audit
from tutoring_scheduler.services import conflict_detector
from tutoring_scheduler.services import time_utils
from tutoring_scheduler.services.availability_index import ensure_within_availability
from tutoring_scheduler.services.bookings import (
    get_student,
    get_subject,
    get_teacher,
)
from tutoring_scheduler.services.rabbitmq_client import publish_booking_event
from tutoring_scheduler.services.time_utils import validate_range

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    recurring_group_id: int
    total_dates: int
    successful: list[dict[str, Any]] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)


def month_dates(dow: int, month: int, year: int) -> list[date]:
    """Every date in (month, year) falling on ``dow`` (0 = Sunday)."""
    if not 0 <= dow <= 6:
        raise ValidationException("day_of_week must be between 0 and 6", code="INVALID_DAY_OF_WEEK")
    if not 1 <= month <= 12:
        raise ValidationException("month must be between 1 and 12", code="INVALID_MONTH")

    current = date(year, month, 1)
    while current.month == month and time_utils.day_of_week(current) != dow:
        current += timedelta(days=1)

    dates: list[date] = []
    while current.month == month:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def next_month(month: int, year: int) -> tuple[int, int]:
    if month >= 12:
        return 1, year + 1
    return month + 1, year


def create_monthly(
    db: Session,
    *,
    teacher_id: int,
    student_id: int,
    day_of_week: int,
    start: str,
    end: str,
    month: int,
    year: int,
    subject_id: int | None = None,
    actor_user_id: str = "system",
) -> BatchResult:
    # Invariant phase
    teacher = get_teacher(db, teacher_id)
    get_student(db, student_id)
    get_subject(db, subject_id)
    validate_range(start, end)

    dates = month_dates(day_of_week, month, year)
    if not dates:
        raise NoMatchingDates(day_of_week, month, year)

    ensure_within_availability(db, teacher.id, day_of_week, start, end)

    with teacher_day_lock(db, teacher.id, dates, student_ids=[student_id]):
        teacher_by_date = conflict_detector.partition_by_date(
            conflict_detector.fetch_active_bookings(db, dates, teacher_id=teacher.id)
        )
        student_by_date = conflict_detector.partition_by_date(
            conflict_detector.fetch_active_bookings(db, dates, student_id=student_id)
        )

        group = RecurringGroup(
            teacher_id=teacher.id,
            student_id=student_id,
            subject_id=subject_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            month=month,
            year=year,
        )
        db.add(group)
        db.flush()

        # Per-date phase
        accepted: list[Booking] = []
        failed: list[dict[str, Any]] = []
        for d in dates:
            result = conflict_detector.evaluate(
                teacher_by_date.get(d, []),
                student_by_date.get(d, []),
                start,
                end,
                student_id,
                teacher.max_capacity,
            )
            if not result.ok:
                failed.append({
                    "date": d,
                    "reason": result.reason,
                    "code": result.error.code,
                })
                continue
            accepted.append(
                Booking(
                    teacher_id=teacher.id,
                    student_id=student_id,
                    subject_id=subject_id,
                    date=d,
                    start_time=start,
                    end_time=end,
                    status=BookingStatus.CONFIRMED.value,
                    confirmed=True,
                    recurring_group_id=group.id,
                )
            )

        db.add_all(accepted)
        db.flush()
        group_id = group.id
        successful = [
            {
                "booking_id": b.id,
                "date": b.date,
                "start_time": b.start_time,
                "end_time": b.end_time,
            }
            for b in accepted
        ]
        audit.log_action(
            db,
            username=actor_user_id,
            action="recurring_batch_created",
            resource_type="recurring_group",
            resource_id=group.id,
            details=f"{month:02d}/{year}: {len(accepted)} created, {len(failed)} failed",
        )
        # group and every accepted booking land in one commit, or none do
        commit_or_raise(db, "recurring_batch_created")

    batch = BatchResult(
        recurring_group_id=group_id,
        total_dates=len(dates),
        successful=successful,
        failed=failed,
    )
    logger.info(
        "Recurring group %s for teacher %s student %s (%02d/%d): %d/%d dates booked",
        group_id, teacher_id, student_id, month, year, len(successful), len(dates),
    )
    if failed:
        logger.warning(
            "Recurring group %s skipped dates: %s",
            group_id, ", ".join(f"{f['date']} ({f['code']})" for f in failed),
        )
    publish_booking_event(
        "recurring_batch_created",
        {
            "recurring_group_id": group_id,
            "teacher_id": teacher_id,
            "student_id": student_id,
            "booking_ids": [s["booking_id"] for s in successful],
            "failed_dates": [f["date"].isoformat() for f in failed],
        },
    )
    return batch


def renew_monthly(db: Session, group_id: int, actor_user_id: str = "system") -> BatchResult:
    """Replay a group for the following month as a new group; the original is untouched."""
    group = db.get(RecurringGroup, group_id)
    if group is None:
        raise NotFound("RecurringGroup", group_id)

    month, year = next_month(group.month, group.year)
    return create_monthly(
        db,
        teacher_id=group.teacher_id,
        student_id=group.student_id,
        subject_id=group.subject_id,
        day_of_week=group.day_of_week,
        start=group.start_time,
        end=group.end_time,
        month=month,
        year=year,
        actor_user_id=actor_user_id,
    )


def list_recurring_groups(db: Session) -> list[tuple[RecurringGroup, int]]:
    """All groups, newest first, each with the number of bookings still pointing at it."""
    return (
        db.query(RecurringGroup, func.count(Booking.id))
        .outerjoin(Booking, Booking.recurring_group_id == RecurringGroup.id)
        .group_by(RecurringGroup.id)
        .order_by(RecurringGroup.created_at.desc(), RecurringGroup.id.desc())
        .all()
    )
