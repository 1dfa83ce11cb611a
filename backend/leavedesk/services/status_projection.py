from __future__ import annotations

from typing import Iterable

from leavedesk.models.enums import LeaveStatus


def project_overall_status(statuses: Iterable[LeaveStatus]) -> LeaveStatus:
    # A single rejection at any level rejects the whole request.
    seen = list(statuses)
    if any(status == LeaveStatus.REJECTED for status in seen):
        return LeaveStatus.REJECTED
    if seen and all(status == LeaveStatus.APPROVED for status in seen):
        return LeaveStatus.APPROVED
    return LeaveStatus.PENDING
