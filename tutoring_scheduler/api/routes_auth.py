from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutoring_scheduler.core.rbac import Actor, get_actor
from tutoring_scheduler.db import get_db
from tutoring_scheduler.models import Student, Teacher

router = APIRouter()


@router.get("/me")
def get_me(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Caller identity, roles and the roster profiles linked to it."""
    teacher = db.query(Teacher).filter(Teacher.user_id == actor.user_id).first()
    student = db.query(Student).filter(Student.user_id == actor.user_id).first()
    return {
        "username": actor.user_id,
        "roles": sorted(actor.roles),
        "teacher_id": teacher.id if teacher else None,
        "student_id": student.id if student else None,
    }
