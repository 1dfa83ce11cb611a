from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from leavedesk.core import observability
from leavedesk.core.deps import Principal
from leavedesk.core.errors import (
    AlreadyDecidedError,
    DuplicatePeriodError,
    FieldError,
    ForbiddenActorError,
    LeaveNotFoundError,
    LeaveValidationError,
    UnknownStageError,
)
from leavedesk.db.base import utcnow
from leavedesk.models.enums import ApprovalStage, Decision, HalfDaySession, LeaveStatus, LeaveType, RequesterKind
from leavedesk.models.leave import LeaveApprovalStage, LeaveRequest, new_pending_stage
from leavedesk.schemas.leave import LeaveRequestCreate
from leavedesk.services.activity import log_activity
from leavedesk.services.admission import (
    DUPLICATE_PERIOD_CODE,
    END_BEFORE_START_MESSAGE,
    resolve_period,
    validate_admission,
)
from leavedesk.services.approval_chain import resolve_stages
from leavedesk.services.directory import load_org_refs
from leavedesk.services.working_days import DurationBreakdown, duration_breakdown

logger = logging.getLogger(__name__)


def _requester_leaves(db: Session, kind: RequesterKind, requester_id: int):
    return db.query(LeaveRequest).filter(
        LeaveRequest.requester_kind == kind,
        LeaveRequest.requester_id == requester_id,
    )


def _reject_admission(errors: list[FieldError]) -> None:
    if any(err.code == DUPLICATE_PERIOD_CODE for err in errors):
        observability.leave_admission_rejections_total.labels(code=DuplicatePeriodError.code).inc()
        raise DuplicatePeriodError(errors=errors)
    observability.leave_admission_rejections_total.labels(code=LeaveValidationError.code).inc()
    raise LeaveValidationError(errors)


def submit_leave(
    db: Session,
    payload: LeaveRequestCreate,
    principal: Principal,
    *,
    today: Optional[date] = None,
) -> LeaveRequest:
    existing = _requester_leaves(db, principal.kind, principal.user_id).all()
    errors = validate_admission(payload, requester_kind=principal.kind, existing=existing, today=today)
    if errors:
        _reject_admission(errors)

    org_refs = load_org_refs(db, principal)
    stages = resolve_stages(principal.kind, org_refs)

    from_date, to_date = resolve_period(payload)
    duration = duration_breakdown(from_date, to_date, payload.is_half_day)
    if payload.no_of_days is not None and payload.no_of_days != duration.no_of_days:
        logger.info(
            "client_duration_mismatch",
            extra={"user_id": principal.user_id, "user_kind": principal.kind.value},
        )

    is_student = principal.kind == RequesterKind.STUDENT
    leave = LeaveRequest(
        requester_kind=principal.kind,
        requester_id=principal.user_id,
        requester_name=org_refs.requester_name or principal.name,
        roll_no=org_refs.roll_no,
        register_no=org_refs.register_no,
        department_id=org_refs.department_id,
        batch_id=org_refs.batch_id if is_student else None,
        section_id=org_refs.section_id if is_student else None,
        from_date=duration.from_date,
        to_date=duration.to_date,
        is_half_day=payload.is_half_day,
        no_of_days=duration.no_of_days,
        calendar_span_days=duration.calendar_span_days,
        for_medical=bool(payload.for_medical) if is_student else False,
        leave_type=None if is_student else LeaveType(payload.leave_type),
        reason=payload.reason.strip(),
        stages=[new_pending_stage(entry.stage, entry.approver_id, position) for position, entry in enumerate(stages)],
    )
    leave.refresh_status()

    db.add(leave)
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost the race against a concurrent submission for the same period.
        db.rollback()
        observability.leave_admission_rejections_total.labels(code=DuplicatePeriodError.code).inc()
        raise DuplicatePeriodError() from exc

    log_activity(
        db,
        actor_kind=principal.kind,
        actor_id=principal.user_id,
        activity_type="LEAVE_REQUESTED",
        leave_request_id=leave.id,
        message=f"Leave requested from {leave.from_date} to {leave.to_date}",
        payload={"stages": [entry.stage.value for entry in stages], "no_of_days": leave.no_of_days},
    )
    observability.leave_requests_submitted_total.labels(requester_kind=principal.kind.value).inc()
    logger.info(
        "leave_submitted",
        extra={"leave_request_id": leave.id, "user_id": principal.user_id, "user_kind": principal.kind.value},
    )
    return leave


def _parse_stage(stage_id: str | ApprovalStage) -> ApprovalStage:
    try:
        return ApprovalStage(stage_id)
    except ValueError:
        raise UnknownStageError(f"Unknown approval stage '{stage_id}'") from None


def decide_stage(
    db: Session,
    *,
    leave_id: int,
    stage_id: str | ApprovalStage,
    actor_id: int,
    decision: Decision,
    comment: Optional[str] = None,
) -> LeaveRequest:
    """Apply one approver's decision to one stage and re-project the overall status.

    The request row is locked for the duration of the transaction and the stage
    write is conditional on the stage still being pending, so two approvers
    deciding different stages of the same request both land.
    """
    leave = (
        db.query(LeaveRequest)
        .options(selectinload(LeaveRequest.stages))
        .filter(LeaveRequest.id == leave_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if not leave:
        raise LeaveNotFoundError()

    stage = _parse_stage(stage_id)
    entry = leave.stage(stage)
    if entry is None:
        raise UnknownStageError(f"Stage '{stage.value}' is not part of this request's approval chain")
    if entry.is_decided:
        raise AlreadyDecidedError(f"Stage '{stage.value}' already {entry.status.value}")
    if entry.approver_staff_id != actor_id:
        raise ForbiddenActorError(f"Stage '{stage.value}' is assigned to a different approver")

    decision = Decision(decision)
    result = db.execute(
        update(LeaveApprovalStage)
        .where(
            LeaveApprovalStage.id == entry.id,
            LeaveApprovalStage.status == LeaveStatus.PENDING,
        )
        .values(status=decision.status, decided_at=utcnow(), comment=comment)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise AlreadyDecidedError(f"Stage '{stage.value}' already decided")

    for sibling in leave.stages:
        db.refresh(sibling)
    leave.refresh_status()
    db.add(leave)
    db.flush()

    log_activity(
        db,
        actor_kind=RequesterKind.STAFF,
        actor_id=actor_id,
        activity_type=f"LEAVE_STAGE_{decision.value.upper()}",
        leave_request_id=leave.id,
        message=f"{stage.value} {decision.value}",
        payload={"stage": stage.value, "decision": decision.value, "comment": comment, "status": leave.status.value},
    )
    observability.leave_stage_decisions_total.labels(stage=stage.value, decision=decision.value).inc()
    logger.info(
        "leave_stage_decided",
        extra={"leave_request_id": leave.id, "stage": stage.value, "decision": decision.value, "user_id": actor_id},
    )
    return leave


def preview_duration(
    from_date: date,
    to_date: Optional[date] = None,
    is_half_day: Optional[HalfDaySession] = None,
) -> DurationBreakdown:
    if to_date is not None and to_date < from_date:
        raise LeaveValidationError([FieldError("to_date", END_BEFORE_START_MESSAGE, "end_before_start")])
    if is_half_day and to_date is not None and to_date != from_date:
        raise LeaveValidationError(
            [FieldError("to_date", "Half day leave must start and end on the same date", "half_day_span")]
        )
    return duration_breakdown(from_date, to_date, is_half_day)


def get_leave_or_404(db: Session, leave_id: int) -> LeaveRequest:
    leave = db.get(LeaveRequest, leave_id)
    if not leave:
        raise LeaveNotFoundError()
    return leave


def can_view(leave: LeaveRequest, principal: Principal) -> bool:
    if leave.requester_kind == principal.kind and leave.requester_id == principal.user_id:
        return True
    return principal.is_staff and any(entry.approver_staff_id == principal.user_id for entry in leave.stages)


def list_requester_leaves(
    db: Session,
    principal: Principal,
    status: Optional[LeaveStatus] = None,
) -> List[LeaveRequest]:
    query = _requester_leaves(db, principal.kind, principal.user_id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()


def list_pending_for_approver(db: Session, staff_id: int) -> List[LeaveRequest]:
    return (
        db.query(LeaveRequest)
        .join(LeaveApprovalStage, LeaveApprovalStage.leave_request_id == LeaveRequest.id)
        .filter(
            LeaveApprovalStage.approver_staff_id == staff_id,
            LeaveApprovalStage.status == LeaveStatus.PENDING,
            LeaveRequest.status == LeaveStatus.PENDING,
        )
        .order_by(LeaveRequest.from_date.asc(), LeaveRequest.id.asc())
        .all()
    )
