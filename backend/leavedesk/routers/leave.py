from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from leavedesk.core.deps import Principal, get_current_principal, require_staff
from leavedesk.db.session import get_db
from leavedesk.models.enums import Decision, HalfDaySession, LeaveStatus
from leavedesk.schemas.leave import (
    DurationPreviewRead,
    LeaveRequestCreate,
    LeaveRequestRead,
    StageDecisionPayload,
)
from leavedesk.services.leave import (
    can_view,
    decide_stage,
    get_leave_or_404,
    list_pending_for_approver,
    list_requester_leaves,
    preview_duration,
    submit_leave,
)

router = APIRouter(prefix="/api/leave-requests", tags=["leave"])


@router.post("", response_model=LeaveRequestRead, status_code=status.HTTP_201_CREATED)
def request_leave(
    leave_in: LeaveRequestCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> LeaveRequestRead:
    leave = submit_leave(db, leave_in, principal)
    db.commit()
    db.refresh(leave)
    return LeaveRequestRead.model_validate(leave)


@router.get("/my", response_model=List[LeaveRequestRead])
def my_leave(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status", description="Filter by overall status"),
) -> List[LeaveRequestRead]:
    leaves = list_requester_leaves(db, principal, status=status_filter)
    return [LeaveRequestRead.model_validate(leave) for leave in leaves]


@router.get("/inbox", response_model=List[LeaveRequestRead])
def leave_inbox(
    db: Session = Depends(get_db),
    approver: Principal = Depends(require_staff),
) -> List[LeaveRequestRead]:
    """Requests with a stage still waiting on the caller."""
    leaves = list_pending_for_approver(db, approver.user_id)
    return [LeaveRequestRead.model_validate(leave) for leave in leaves]


@router.get("/duration", response_model=DurationPreviewRead)
def duration_preview(
    from_date: date,
    to_date: Optional[date] = None,
    is_half_day: Optional[HalfDaySession] = None,
    _: Principal = Depends(get_current_principal),
) -> DurationPreviewRead:
    breakdown = preview_duration(from_date, to_date, is_half_day)
    return DurationPreviewRead.model_validate(breakdown)


@router.get("/{leave_id}", response_model=LeaveRequestRead)
def read_leave(
    leave_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> LeaveRequestRead:
    leave = get_leave_or_404(db, leave_id)
    if not can_view(leave, principal):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorised to view this leave request")
    return LeaveRequestRead.model_validate(leave)


def _decide(db: Session, leave_id: int, stage: str, approver: Principal, decision: Decision, comment: Optional[str]):
    leave = decide_stage(
        db,
        leave_id=leave_id,
        stage_id=stage,
        actor_id=approver.user_id,
        decision=decision,
        comment=comment,
    )
    db.commit()
    db.refresh(leave)
    return LeaveRequestRead.model_validate(leave)


@router.post("/{leave_id}/stages/{stage}/approve", response_model=LeaveRequestRead)
def approve(
    leave_id: int,
    stage: str,
    payload: Optional[StageDecisionPayload] = None,
    db: Session = Depends(get_db),
    approver: Principal = Depends(require_staff),
) -> LeaveRequestRead:
    return _decide(db, leave_id, stage, approver, Decision.APPROVED, payload.comment if payload else None)


@router.post("/{leave_id}/stages/{stage}/reject", response_model=LeaveRequestRead)
def reject(
    leave_id: int,
    stage: str,
    payload: Optional[StageDecisionPayload] = None,
    db: Session = Depends(get_db),
    approver: Principal = Depends(require_staff),
) -> LeaveRequestRead:
    return _decide(db, leave_id, stage, approver, Decision.REJECTED, payload.comment if payload else None)
