import datetime as dt

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from tutoring_scheduler.core.rbac import Actor, Role, require_roles
from tutoring_scheduler.db import get_db
from tutoring_scheduler.services import audit as audit_service

router = APIRouter(prefix="/audit-logs", tags=["audit"])


class AuditEntryRead(BaseModel):
    id: int
    username: str
    action: str
    resource_type: str | None = None
    resource_id: int | None = None
    details: str | None = None
    created_at: dt.datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AuditPageRead(BaseModel):
    items: list[AuditEntryRead]
    total: int
    limit: int
    offset: int


@router.get("", response_model=AuditPageRead)
def list_audit_entries(
    username: str | None = Query(None),
    action: str | None = Query(None, examples=["booking_confirmed"]),
    resource_type: str | None = Query(None, examples=["booking"]),
    resource_id: int | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles([Role.ADMIN])),
):
    """History of booking changes, newest first. Admin only."""
    entries, total = audit_service.list_actions(
        db,
        username=username,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        limit=limit,
        offset=offset,
    )
    return AuditPageRead(
        items=[AuditEntryRead.model_validate(e) for e in entries],
        total=total,
        limit=limit,
        offset=offset,
    )
