from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from leavedesk.core.errors import UnresolvedApprovalChainError
from leavedesk.models.enums import ApprovalStage, RequesterKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrgRefs:
    """Organisational references for one requester, as read from the directory.

    ``batch_id``, ``section_id``, ``mentor_id`` and ``class_incharge_id`` are
    only meaningful for students.
    """

    department_id: int
    hod_id: Optional[int] = None
    batch_id: Optional[int] = None
    section_id: Optional[int] = None
    mentor_id: Optional[int] = None
    class_incharge_id: Optional[int] = None
    requester_name: Optional[str] = None
    roll_no: Optional[str] = None
    register_no: Optional[str] = None


@dataclass(frozen=True)
class ResolvedStage:
    stage: ApprovalStage
    approver_id: int


APPROVAL_ROUTING: dict[RequesterKind, list[ApprovalStage]] = {
    RequesterKind.STUDENT: [ApprovalStage.MENTOR, ApprovalStage.CLASS_INCHARGE, ApprovalStage.HOD],
    RequesterKind.STAFF: [ApprovalStage.HOD],
}

_STAGE_ROLE_LABELS = {
    ApprovalStage.MENTOR: "mentor",
    ApprovalStage.CLASS_INCHARGE: "class incharge",
    ApprovalStage.HOD: "head of department",
}


def _approver_for(stage: ApprovalStage, refs: OrgRefs) -> Optional[int]:
    if stage == ApprovalStage.MENTOR:
        return refs.mentor_id
    if stage == ApprovalStage.CLASS_INCHARGE:
        return refs.class_incharge_id
    return refs.hod_id


def _dedupe_stages(stages: list[ResolvedStage]) -> list[ResolvedStage]:
    """Drop the mentor stage when the class incharge is the same person.

    The class incharge stage is the one kept; more generally no actor is bound
    to two stages, and the later stage in chain order wins.
    """
    seen: set[int] = set()
    kept: list[ResolvedStage] = []
    for candidate in reversed(stages):
        if candidate.approver_id in seen:
            continue
        seen.add(candidate.approver_id)
        kept.append(candidate)
    kept.reverse()
    return kept


def resolve_stages(requester_kind: RequesterKind, org_refs: OrgRefs) -> list[ResolvedStage]:
    routing = APPROVAL_ROUTING.get(RequesterKind(requester_kind))
    if not routing:
        raise UnresolvedApprovalChainError(f"No approval routing for requester kind {requester_kind}")

    missing: list[str] = []
    resolved: list[ResolvedStage] = []
    for stage in routing:
        approver_id = _approver_for(stage, org_refs)
        if approver_id is None:
            missing.append(_STAGE_ROLE_LABELS[stage])
            continue
        resolved.append(ResolvedStage(stage=stage, approver_id=approver_id))

    if missing:
        logger.warning(
            "approval_chain_unresolved",
            extra={"user_kind": str(RequesterKind(requester_kind).value)},
        )
        raise UnresolvedApprovalChainError(f"No {', '.join(missing)} assigned for this requester")

    return _dedupe_stages(resolved)
