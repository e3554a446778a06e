"""
Audit logging for booking state changes.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from tutoring_scheduler.models import AuditLog


def log_action(
    db: Session,
    username: str,
    action: str,
    resource_type: str | None = None,
    resource_id: int | None = None,
    details: str | None = None,
) -> AuditLog:
    """
    Record an action in the audit log.

    The entry joins the caller's transaction: it is written by the same commit
    as the change it describes and rolled back with it.

    Args:
        db: Database session
        username: Identity that performed the action
        action: Action name (e.g., "booking_created", "booking_confirmed")
        resource_type: Type of resource affected (e.g., "booking", "recurring_group")
        resource_id: ID of the resource affected
        details: Additional details about the action

    Returns:
        The pending AuditLog entry
    """
    log_entry = AuditLog(
        username=username,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
    )
    db.add(log_entry)
    return log_entry


def list_actions(
    db: Session,
    *,
    username: str | None = None,
    action: str | None = None,
    resource_type: str | None = None,
    resource_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[AuditLog], int]:
    """Filtered page of entries, newest first, plus the total match count."""
    query = db.query(AuditLog)
    if username:
        query = query.filter(AuditLog.username == username)
    if action:
        query = query.filter(AuditLog.action == action)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    if resource_id is not None:
        query = query.filter(AuditLog.resource_id == resource_id)

    total = query.count()
    logs = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return logs, total
