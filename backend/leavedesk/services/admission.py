from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from leavedesk.core.errors import FieldError
from leavedesk.core.settings import settings
from leavedesk.models.enums import LeaveStatus, LeaveType, RequesterKind
from leavedesk.models.leave import LeaveRequest
from leavedesk.schemas.leave import LeaveRequestCreate

END_BEFORE_START_MESSAGE = "Leave end date must be after the start date"
DUPLICATE_PERIOD_MESSAGE = "You already have a leave request for this period"
DUPLICATE_PERIOD_CODE = "duplicate_period"

_LEAVE_TYPE_VALUES = [leave_type.value for leave_type in LeaveType]


def resolve_period(payload: LeaveRequestCreate) -> tuple[Optional[date], Optional[date]]:
    """Effective (from, to) for a candidate: one-day and half-day requests end where they start."""
    if payload.from_date is None:
        return None, payload.to_date
    if payload.single_day or (payload.is_half_day and payload.to_date is None):
        return payload.from_date, payload.from_date
    return payload.from_date, payload.to_date


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    # Inclusive: a shared boundary day is an overlap.
    return a_from <= b_to and b_from <= a_to


def _check_period(payload: LeaveRequestCreate, today: date) -> list[FieldError]:
    errors: list[FieldError] = []
    from_date, to_date = resolve_period(payload)

    if from_date is None:
        errors.append(FieldError("from_date", "Date from must be selected", "required"))
    elif from_date < today:
        errors.append(FieldError("from_date", "Date from must not be in the past", "past_date"))

    if to_date is None:
        errors.append(FieldError("to_date", "Date to must be selected", "required"))
    elif from_date is not None and to_date < from_date:
        errors.append(FieldError("to_date", END_BEFORE_START_MESSAGE, "end_before_start"))
    elif payload.is_half_day and from_date is not None and to_date != from_date:
        errors.append(FieldError("to_date", "Half day leave must start and end on the same date", "half_day_span"))

    return errors


def _check_reason(payload: LeaveRequestCreate) -> list[FieldError]:
    reason = (payload.reason or "").strip()
    if not reason:
        return [FieldError("reason", "Reason must be given", "required")]
    limit = settings.reason_max_length
    if len(reason) > limit:
        return [FieldError("reason", f"Reason must be less than {limit} characters", "too_long")]
    return []


def _check_leave_type(payload: LeaveRequestCreate, requester_kind: RequesterKind) -> list[FieldError]:
    if requester_kind != RequesterKind.STAFF:
        return []
    if payload.leave_type in _LEAVE_TYPE_VALUES:
        return []
    return [
        FieldError(
            "leave_type",
            f"Type of leave must be one of: {', '.join(_LEAVE_TYPE_VALUES)}",
            "invalid_choice",
        )
    ]


def _check_overlap(payload: LeaveRequestCreate, existing: Iterable[LeaveRequest]) -> list[FieldError]:
    from_date, to_date = resolve_period(payload)
    for leave in existing:
        if leave.status == LeaveStatus.REJECTED:
            continue
        if ranges_overlap(from_date, to_date, leave.from_date, leave.to_date or leave.from_date):
            return [FieldError("period", DUPLICATE_PERIOD_MESSAGE, DUPLICATE_PERIOD_CODE)]
    return []


def validate_admission(
    payload: LeaveRequestCreate,
    *,
    requester_kind: RequesterKind,
    existing: Iterable[LeaveRequest] = (),
    today: Optional[date] = None,
) -> list[FieldError]:
    """Collect every admission rule violation for a candidate; an empty list means admissible."""
    today = today or settings.institution_today()
    period_errors = _check_period(payload, today)
    errors = period_errors + _check_reason(payload) + _check_leave_type(payload, requester_kind)

    # Overlap is only meaningful for a well-formed period.
    if not any(err.field in {"from_date", "to_date"} for err in period_errors):
        errors += _check_overlap(payload, existing)
    return errors
