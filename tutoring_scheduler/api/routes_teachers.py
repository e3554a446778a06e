from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutoring_scheduler.api.schemas_roster import TeacherCreate, TeacherOut, TeacherUpdate
from tutoring_scheduler.core.rbac import Actor, Role, get_actor, require_roles
from tutoring_scheduler.db import commit_or_raise, get_db
from tutoring_scheduler.models import Teacher
from tutoring_scheduler.services.bookings import get_teacher

router = APIRouter(prefix="/teachers", tags=["teachers"])


@router.post("", response_model=TeacherOut, status_code=201)
def create_teacher(
    teacher: TeacherCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_teacher = Teacher(**teacher.model_dump())
    db.add(db_teacher)
    commit_or_raise(db, "teacher_created")
    db.refresh(db_teacher)
    return db_teacher


@router.get("", response_model=list[TeacherOut])
def get_teachers(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return db.query(Teacher).order_by(Teacher.last_name, Teacher.first_name).all()


@router.get("/{teacher_id}", response_model=TeacherOut)
def get_teacher_by_id(teacher_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return get_teacher(db, teacher_id)


@router.patch("/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: int,
    teacher: TeacherUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_teacher = get_teacher(db, teacher_id)
    for field, value in teacher.model_dump(exclude_unset=True).items():
        setattr(db_teacher, field, value)
    commit_or_raise(db, "teacher_updated")
    db.refresh(db_teacher)
    return db_teacher


@router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_teacher = get_teacher(db, teacher_id)
    db.delete(db_teacher)
    commit_or_raise(db, "teacher_deleted")
    return {"detail": "Teacher deleted"}
