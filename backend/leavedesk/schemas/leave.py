from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from leavedesk.models.enums import (
    ApprovalStage,
    HalfDaySession,
    LeaveStatus,
    LeaveType,
    RequesterKind,
)
from leavedesk.schemas.base import ORMModel


class LeaveRequestCreate(ORMModel):
    # Business rules live in services.admission so every violation is reported
    # at once; the schema only enforces types.
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    single_day: bool = False
    is_half_day: Optional[HalfDaySession] = None
    for_medical: bool = False
    leave_type: Optional[str] = None
    reason: Optional[str] = None
    no_of_days: Optional[float] = Field(
        default=None,
        description="Client-side preview; ignored in favour of the server computation",
    )


class StageDecisionPayload(ORMModel):
    comment: Optional[str] = Field(default=None, max_length=1000)


class LeaveApprovalStageRead(ORMModel):
    stage: ApprovalStage
    position: int
    approver_staff_id: int
    status: LeaveStatus
    decided_at: Optional[datetime] = None
    comment: Optional[str] = None


class LeaveRequestRead(ORMModel):
    id: int
    requester_kind: RequesterKind
    requester_id: int
    requester_name: Optional[str] = None
    roll_no: Optional[str] = None
    register_no: Optional[str] = None
    department_id: int
    batch_id: Optional[int] = None
    section_id: Optional[int] = None
    from_date: date
    to_date: date
    is_half_day: Optional[HalfDaySession] = None
    no_of_days: float
    calendar_span_days: int
    for_medical: bool
    leave_type: Optional[LeaveType] = None
    reason: str
    status: LeaveStatus
    stages: List[LeaveApprovalStageRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class DurationPreviewRead(ORMModel):
    from_date: date
    to_date: date
    chargeable_days: int
    calendar_span_days: int
    no_of_days: float
