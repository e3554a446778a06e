from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from tutoring_scheduler.core.exceptions import Forbidden, NotFound
from tutoring_scheduler.core.rbac import Actor, Role, get_actor, require_roles
from tutoring_scheduler.db import commit_or_raise, get_db
from tutoring_scheduler.models import Availability, Teacher
from tutoring_scheduler.services.bookings import get_teacher
from tutoring_scheduler.services.time_utils import TIME_PATTERN, to_minutes, validate_range

router = APIRouter(
    prefix="",
    tags=["availability"],
)


# =====================
# Schemas (Pydantic)
# =====================

class AvailabilityRead(BaseModel):
    id: int
    teacher_id: int
    day_of_week: int
    start_time: str
    end_time: str

    model_config = ConfigDict(from_attributes=True)


class AvailabilitySlotIn(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    start_time: str = Field(..., pattern=TIME_PATTERN.pattern, examples=["14:00"])
    end_time: str = Field(..., pattern=TIME_PATTERN.pattern, examples=["18:00"])


class AvailabilityCreate(AvailabilitySlotIn):
    teacher_id: int


class AvailabilityBulkCreate(BaseModel):
    teacher_id: int
    slots: List[AvailabilitySlotIn] = Field(..., min_length=1)


class AvailabilityUpdate(BaseModel):
    day_of_week: int | None = Field(None, ge=0, le=6)
    start_time: str | None = Field(None, pattern=TIME_PATTERN.pattern)
    end_time: str | None = Field(None, pattern=TIME_PATTERN.pattern)


# =====================
# Helpers
# =====================

def _ensure_can_edit(actor: Actor, teacher: Teacher) -> None:
    # Teachers can only modify their own availability
    if actor.is_admin:
        return
    if teacher.user_id != actor.user_id:
        raise Forbidden("Can only modify own availability")


def _get_slot(db: Session, availability_id: int) -> Availability:
    availability = db.get(Availability, availability_id)
    if not availability:
        raise NotFound("Availability", availability_id)
    return availability


def _ordered(slots: list[Availability]) -> list[Availability]:
    return sorted(slots, key=lambda s: (s.day_of_week, to_minutes(s.start_time)))


# =====================
# Endpoints
# =====================

@router.get("/teachers/{teacher_id}/availability", response_model=List[AvailabilityRead])
def get_teacher_availability(
    teacher_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """List availability for a teacher, by weekday then start time."""
    get_teacher(db, teacher_id)
    slots = db.query(Availability).filter(Availability.teacher_id == teacher_id).all()
    return _ordered(slots)


@router.post("/availability", response_model=AvailabilityRead, status_code=201)
def create_availability(
    availability_in: AvailabilityCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    """Declare one open window for a teacher on a weekday."""
    teacher = get_teacher(db, availability_in.teacher_id)
    _ensure_can_edit(actor, teacher)
    validate_range(availability_in.start_time, availability_in.end_time)

    availability = Availability(
        teacher_id=teacher.id,
        day_of_week=availability_in.day_of_week,
        start_time=availability_in.start_time,
        end_time=availability_in.end_time,
    )
    db.add(availability)
    commit_or_raise(db, "availability_created")
    db.refresh(availability)
    return availability


@router.post("/availability/bulk", status_code=201)
def create_availability_bulk(
    body: AvailabilityBulkCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    """Declare several windows for one teacher in a single commit."""
    teacher = get_teacher(db, body.teacher_id)
    _ensure_can_edit(actor, teacher)
    for slot in body.slots:
        validate_range(slot.start_time, slot.end_time)

    db.add_all(
        Availability(
            teacher_id=teacher.id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        for slot in body.slots
    )
    commit_or_raise(db, "availability_bulk_created")

    slots = db.query(Availability).filter(Availability.teacher_id == teacher.id).all()
    return {
        "message": f"Created {len(body.slots)} availability slots",
        "availabilities": [AvailabilityRead.model_validate(s) for s in _ordered(slots)],
    }


@router.patch("/availability/{availability_id}", response_model=AvailabilityRead)
def update_availability(
    availability_id: int,
    availability_in: AvailabilityUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    availability = _get_slot(db, availability_id)
    _ensure_can_edit(actor, availability.teacher)

    start = availability_in.start_time or availability.start_time
    end = availability_in.end_time or availability.end_time
    validate_range(start, end)

    if availability_in.day_of_week is not None:
        availability.day_of_week = availability_in.day_of_week
    availability.start_time = start
    availability.end_time = end
    commit_or_raise(db, "availability_updated")
    db.refresh(availability)
    return availability


@router.delete("/availability/{availability_id}")
def delete_availability(
    availability_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN, Role.TEACHER])),
):
    availability = _get_slot(db, availability_id)
    _ensure_can_edit(actor, availability.teacher)

    db.delete(availability)
    commit_or_raise(db, "availability_deleted")
    return {"detail": "Availability slot deleted"}
