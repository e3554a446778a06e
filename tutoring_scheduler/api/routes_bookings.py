from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tutoring_scheduler.api.schemas_booking import (
    AdminAssignCreate,
    AttendanceMark,
    BatchResultRead,
    BookingCreate,
    BookingPageRead,
    BookingRead,
    BookingUpdate,
    MonthlyBookingCreate,
    RecurringGroupRead,
)
from tutoring_scheduler.core.config import settings
from tutoring_scheduler.core.rbac import Actor, Role, get_actor, require_roles
from tutoring_scheduler.db import get_db
from tutoring_scheduler.models import BookingStatus
from tutoring_scheduler.services import bookings as booking_service
from tutoring_scheduler.services import recurrence as recurrence_service

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post("", response_model=BookingRead, status_code=201)
def create_booking(
    body: BookingCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Request a session. Starts as PENDING until an administrator confirms it."""
    return booking_service.create_booking(
        db,
        teacher_id=body.teacher_id,
        student_id=body.student_id,
        subject_id=body.subject_id,
        booking_date=body.date,
        start=body.start_time,
        end=body.end_time,
        actor_user_id=actor.user_id,
    )


@router.get("", response_model=BookingPageRead)
def list_bookings(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    teacher_id: int | None = Query(None),
    status: BookingStatus | None = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    result = booking_service.list_bookings(
        db,
        actor,
        page=page,
        page_size=page_size,
        date_from=date_from,
        date_to=date_to,
        teacher_id=teacher_id,
        status=status,
    )
    return BookingPageRead(
        items=[BookingRead.model_validate(b) for b in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/recurring-groups", response_model=List[RecurringGroupRead])
def list_recurring_groups(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    groups = recurrence_service.list_recurring_groups(db)
    return [
        RecurringGroupRead.model_validate(group).model_copy(update={"booking_count": count})
        for group, count in groups
    ]


@router.post("/admin-assign", response_model=BookingRead, status_code=201)
def admin_assign(
    body: AdminAssignCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    """Administrator assigns a session directly as CONFIRMED."""
    return booking_service.admin_assign(
        db,
        teacher_id=body.teacher_id,
        student_id=body.student_id,
        subject_id=body.subject_id,
        booking_date=body.date,
        start=body.start_time,
        end=body.end_time,
        actor_user_id=actor.user_id,
    )


@router.post("/monthly", response_model=BatchResultRead, status_code=201)
def create_monthly(
    body: MonthlyBookingCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    """
    Book the same weekday and time for every week of a month.
    Dates that fail a check are reported in `failed`; the rest are booked.
    """
    return recurrence_service.create_monthly(
        db,
        teacher_id=body.teacher_id,
        student_id=body.student_id,
        subject_id=body.subject_id,
        day_of_week=body.day_of_week,
        start=body.start_time,
        end=body.end_time,
        month=body.month,
        year=body.year,
        actor_user_id=actor.user_id,
    )


@router.post("/monthly/{group_id}/renew", response_model=BatchResultRead, status_code=201)
def renew_monthly(
    group_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    """Repeat a recurring group for the following month."""
    return recurrence_service.renew_monthly(db, group_id, actor_user_id=actor.user_id)


@router.get("/{booking_id}", response_model=BookingRead)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return booking_service.get_booking(db, booking_id, actor)


@router.patch("/{booking_id}", response_model=BookingRead)
def update_booking(
    booking_id: int,
    body: BookingUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    """Transfer to another teacher or change the time. Resets confirmation."""
    return booking_service.update_booking(
        db,
        booking_id,
        teacher_id=body.teacher_id,
        booking_date=body.date,
        start=body.start_time,
        end=body.end_time,
        actor_user_id=actor.user_id,
    )


@router.patch("/{booking_id}/confirm", response_model=BookingRead)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    return booking_service.confirm_booking(db, booking_id, actor_user_id=actor.user_id)


@router.patch("/{booking_id}/attendance", response_model=BookingRead)
def mark_attendance(
    booking_id: int,
    body: AttendanceMark,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    return booking_service.mark_attendance(
        db,
        booking_id,
        body.attendance,
        actor,
        notes=body.notes,
    )


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    removed = booking_service.remove_booking(db, booking_id, actor)
    return {"detail": "Booking cancelled", "id": removed["id"]}
