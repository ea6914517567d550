# Overview: Append-only activity log (audit trail) writes and reads.

from __future__ import annotations

from ..extensions import db
from ..models import ActivityLog


def record_activity(user_id: int | None, action: str, details: str | None = None, *, commit: bool = True) -> ActivityLog:
    """
    Append an audit entry.

    commit=False joins the caller's transaction so the entry is written
    atomically with the change it describes.

    action examples:
    - LOGIN / LOGIN_FAILED
    - ACCESS_DENIED
    - CUSTOMER_CREATED / CUSTOMER_DELETED
    - INVENTORY_CREATED / INVENTORY_UPDATED / INVENTORY_DELETED
    - APPOINTMENT_CREATED / APPOINTMENT_STATUS_CHANGED
    - EYE_TEST_RECORDED / PRESCRIPTION_ISSUED
    - SALE_COMPLETED
    - USER_CREATED / USER_ROLE_CHANGED / USER_PASSWORD_CHANGED
    """
    entry = ActivityLog(user_id=user_id, action=action, details=details)
    db.session.add(entry)
    if commit:
        db.session.commit()
    return entry


def list_recent_activity(limit: int = 100) -> list[ActivityLog]:
    return (
        db.session.query(ActivityLog)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
