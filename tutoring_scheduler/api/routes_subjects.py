from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutoring_scheduler.api.schemas_roster import SubjectCreate, SubjectOut, SubjectUpdate
from tutoring_scheduler.core.exceptions import NotFound
from tutoring_scheduler.core.rbac import Actor, Role, get_actor, require_roles
from tutoring_scheduler.db import commit_or_raise, get_db
from tutoring_scheduler.models import Subject

router = APIRouter(prefix="/subjects", tags=["subjects"])


def _get_subject(db: Session, subject_id: int) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise NotFound("Subject", subject_id)
    return subject


@router.post("", response_model=SubjectOut, status_code=201)
def create_subject(
    subject: SubjectCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_subject = Subject(name=subject.name, description=subject.description)
    db.add(db_subject)
    commit_or_raise(db, "subject_created")
    db.refresh(db_subject)
    return db_subject


@router.get("", response_model=list[SubjectOut])
def get_subjects(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return db.query(Subject).order_by(Subject.name).all()


@router.get("/{subject_id}", response_model=SubjectOut)
def get_subject(subject_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return _get_subject(db, subject_id)


@router.patch("/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: int,
    subject: SubjectUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_subject = _get_subject(db, subject_id)
    for field, value in subject.model_dump(exclude_unset=True).items():
        setattr(db_subject, field, value)
    commit_or_raise(db, "subject_updated")
    db.refresh(db_subject)
    return db_subject


@router.delete("/{subject_id}")
def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    db_subject = _get_subject(db, subject_id)
    db.delete(db_subject)
    commit_or_raise(db, "subject_deleted")
    return {"detail": "Subject deleted"}
