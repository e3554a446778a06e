from __future__ import annotations

from sqlalchemy.orm import Session

from tutoring_scheduler.core.exceptions import OutsideAvailability, TeacherNotAvailableThatDay
from tutoring_scheduler.models import Availability
from tutoring_scheduler.services.time_utils import contains, day_name, to_minutes


def get_slots(db: Session, teacher_id: int, dow: int) -> list[Availability]:
    slots = (
        db.query(Availability)
        .filter(
            Availability.teacher_id == teacher_id,
            Availability.day_of_week == dow,
        )
        .all()
    )
    return sorted(slots, key=lambda s: to_minutes(s.start_time))


def fits_any_slot(slots: list[Availability], start: str, end: str) -> bool:
    """True when [start, end) lies inside at least one slot. Slots are a union."""
    start_min, end_min = to_minutes(start), to_minutes(end)
    return any(
        contains(to_minutes(s.start_time), to_minutes(s.end_time), start_min, end_min)
        for s in slots
    )


def is_within_availability(db: Session, teacher_id: int, dow: int, start: str, end: str) -> bool:
    slots = get_slots(db, teacher_id, dow)
    if not slots:
        return False
    return fits_any_slot(slots, start, end)


def ensure_within_availability(db: Session, teacher_id: int, dow: int, start: str, end: str) -> None:
    """Raise the matching availability failure instead of returning False."""
    slots = get_slots(db, teacher_id, dow)
    if not slots:
        raise TeacherNotAvailableThatDay(teacher_id, dow, day_name(dow))
    if not fits_any_slot(slots, start, end):
        raise OutsideAvailability(
            teacher_id,
            dow,
            [f"{s.start_time}-{s.end_time}" for s in slots],
        )
