from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from leavedesk.core.deps import Principal
from leavedesk.core.errors import UnresolvedApprovalChainError
from leavedesk.models.directory import Department, Section, Staff, Student
from leavedesk.models.enums import RequesterKind
from leavedesk.services.approval_chain import OrgRefs


def _hod_for(db: Session, department_id: int) -> Optional[int]:
    department = db.get(Department, department_id)
    if not department:
        raise UnresolvedApprovalChainError(f"Department {department_id} not found")
    return department.hod_staff_id


def _student_refs(db: Session, student_id: int) -> OrgRefs:
    student = db.get(Student, student_id)
    if not student:
        raise UnresolvedApprovalChainError("Student record not found in directory")

    class_incharge_id: Optional[int] = None
    if student.section_id is not None:
        section = db.get(Section, student.section_id)
        if section:
            class_incharge_id = section.class_incharge_staff_id

    return OrgRefs(
        department_id=student.department_id,
        hod_id=_hod_for(db, student.department_id),
        batch_id=student.batch_id,
        section_id=student.section_id,
        mentor_id=student.mentor_staff_id,
        class_incharge_id=class_incharge_id,
        requester_name=student.name,
        roll_no=student.roll_no,
        register_no=student.register_no,
    )


def _staff_refs(db: Session, staff_id: int) -> OrgRefs:
    staff = db.get(Staff, staff_id)
    if not staff:
        raise UnresolvedApprovalChainError("Staff record not found in directory")
    return OrgRefs(
        department_id=staff.department_id,
        hod_id=_hod_for(db, staff.department_id),
        requester_name=staff.staff_name,
    )


def load_org_refs(db: Session, principal: Principal) -> OrgRefs:
    if principal.kind == RequesterKind.STUDENT:
        return _student_refs(db, principal.user_id)
    return _staff_refs(db, principal.user_id)
