from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutoring_scheduler.api.schemas_roster import StudentCreate, StudentOut, StudentUpdate
from tutoring_scheduler.core.rbac import Actor, Role, get_actor, require_roles
from tutoring_scheduler.db import commit_or_raise, get_db
from tutoring_scheduler.models import Student
from tutoring_scheduler.services.bookings import get_student

router = APIRouter(prefix="/students", tags=["students"])


@router.post("", response_model=StudentOut, status_code=201)
def create_student(
    student: StudentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_student = Student(**student.model_dump())
    db.add(db_student)
    commit_or_raise(db, "student_created")
    db.refresh(db_student)
    return db_student


@router.get("", response_model=list[StudentOut])
def get_students(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return db.query(Student).order_by(Student.last_name, Student.first_name).all()


@router.get("/{student_id}", response_model=StudentOut)
def get_student_by_id(student_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return get_student(db, student_id)


@router.patch("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    student: StudentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_student = get_student(db, student_id)
    for field, value in student.model_dump(exclude_unset=True).items():
        setattr(db_student, field, value)
    commit_or_raise(db, "student_updated")
    db.refresh(db_student)
    return db_student


@router.delete("/{student_id}")
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_student = get_student(db, student_id)
    db.delete(db_student)
    commit_or_raise(db, "student_deleted")
    return {"detail": "Student deleted"}
