from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from leavedesk.models.audit import ActivityLog
from leavedesk.models.enums import RequesterKind


def log_activity(
    db: Session,
    *,
    actor_kind: Optional[RequesterKind],
    actor_id: Optional[int],
    activity_type: str,
    leave_request_id: Optional[int] = None,
    message: Optional[str] = None,
    payload: Optional[dict] = None,
) -> ActivityLog:
    activity = ActivityLog(
        actor_kind=actor_kind,
        actor_id=actor_id,
        type=activity_type,
        leave_request_id=leave_request_id,
        message=message,
        payload_json=payload,
    )
    db.add(activity)
    db.flush()
    return activity
