from __future__ import annotations

from enum import Enum


class RequesterKind(str, Enum):
    STUDENT = "Student"
    STAFF = "Staff"


class HalfDaySession(str, Enum):
    FN = "FN"  # forenoon
    AN = "AN"  # afternoon


class LeaveType(str, Enum):
    CASUAL = "Casual Leave"
    SICK = "Sick Leave"
    EARNED = "Earned Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    STUDY = "Study Leave"
    DUTY = "Duty Leave"
    SPECIAL = "Special Leave"
    SABBATICAL = "Sabbatical Leave"


class ApprovalStage(str, Enum):
    # Declaration order is chain order.
    MENTOR = "mentor"
    CLASS_INCHARGE = "classIncharge"
    HOD = "hod"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def status(self) -> LeaveStatus:
        return LeaveStatus(self.value)
