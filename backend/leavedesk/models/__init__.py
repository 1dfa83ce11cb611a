"""Import all models so SQLAlchemy metadata is fully registered."""

from leavedesk.db.base import Base

from leavedesk.models.audit import ActivityLog
from leavedesk.models.directory import Batch, Department, Section, Staff, Student
from leavedesk.models.enums import (
    ApprovalStage,
    Decision,
    HalfDaySession,
    LeaveStatus,
    LeaveType,
    RequesterKind,
)
from leavedesk.models.leave import LeaveApprovalStage, LeaveRequest, new_pending_stage

__all__ = [
    "Base",
    "ActivityLog",
    "Batch",
    "Department",
    "Section",
    "Staff",
    "Student",
    "ApprovalStage",
    "Decision",
    "HalfDaySession",
    "LeaveStatus",
    "LeaveType",
    "RequesterKind",
    "LeaveApprovalStage",
    "LeaveRequest",
    "new_pending_stage",
]
