from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.db.base import Base, IDMixin, TimestampMixin, utcnow, value_enum
from leavedesk.models.enums import (
    ApprovalStage,
    HalfDaySession,
    LeaveStatus,
    LeaveType,
    RequesterKind,
)
from leavedesk.services.status_projection import project_overall_status


_ACTIVE_ONLY = text("status != 'rejected'")
_status_type = value_enum(LeaveStatus, "leave_status")


class LeaveRequest(IDMixin, TimestampMixin, Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        # Storage backstop for the admission overlap check: two concurrent
        # submissions starting on the same day cannot both stay active.
        Index(
            "uq_leave_requests_active_start",
            "requester_kind",
            "requester_id",
            "from_date",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index("ix_leave_requests_requester", "requester_kind", "requester_id"),
    )

    requester_kind: Mapped[RequesterKind] = mapped_column(
        value_enum(RequesterKind, "requester_kind"),
        nullable=False,
    )
    requester_id: Mapped[int] = mapped_column(Integer, nullable=False)
    requester_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    roll_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    register_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), nullable=False, index=True)
    batch_id: Mapped[Optional[int]] = mapped_column(ForeignKey("batches.id"), nullable=True)
    section_id: Mapped[Optional[int]] = mapped_column(ForeignKey("sections.id"), nullable=True)

    from_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    to_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_half_day: Mapped[Optional[HalfDaySession]] = mapped_column(
        value_enum(HalfDaySession, "half_day_session"),
        nullable=True,
    )
    no_of_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    calendar_span_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    for_medical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    leave_type: Mapped[Optional[LeaveType]] = mapped_column(value_enum(LeaveType, "leave_type"), nullable=True)

    reason: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[LeaveStatus] = mapped_column(
        _status_type,
        default=LeaveStatus.PENDING,
        nullable=False,
        index=True,
    )

    stages: Mapped[List["LeaveApprovalStage"]] = relationship(
        back_populates="leave_request",
        cascade="all, delete-orphan",
        order_by="LeaveApprovalStage.position",
    )

    def stage(self, stage: ApprovalStage) -> Optional["LeaveApprovalStage"]:
        for entry in self.stages:
            if entry.stage == stage:
                return entry
        return None

    @property
    def stage_names(self) -> list[ApprovalStage]:
        return [entry.stage for entry in self.stages]

    def refresh_status(self) -> LeaveStatus:
        """Recompute the overall status from the stage map. The only writer of ``status``."""
        self.status = project_overall_status(entry.status for entry in self.stages)
        self.updated_at = utcnow()
        return self.status


class LeaveApprovalStage(IDMixin, Base):
    __tablename__ = "leave_approval_stages"
    __table_args__ = (UniqueConstraint("leave_request_id", "stage", name="uq_leave_approval_stages_request_stage"),)

    leave_request_id: Mapped[int] = mapped_column(
        ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage: Mapped[ApprovalStage] = mapped_column(value_enum(ApprovalStage, "approval_stage"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_staff_id: Mapped[int] = mapped_column(ForeignKey("staff.id"), nullable=False, index=True)
    status: Mapped[LeaveStatus] = mapped_column(
        _status_type,
        default=LeaveStatus.PENDING,
        nullable=False,
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    leave_request: Mapped[LeaveRequest] = relationship(back_populates="stages")

    @property
    def is_decided(self) -> bool:
        return self.status != LeaveStatus.PENDING


def new_pending_stage(stage: ApprovalStage, approver_staff_id: int, position: int) -> LeaveApprovalStage:
    """Single factory for stage rows so every stage starts from the same default."""
    return LeaveApprovalStage(
        stage=stage,
        position=position,
        approver_staff_id=approver_staff_id,
        status=LeaveStatus.PENDING,
        decided_at=None,
    )
