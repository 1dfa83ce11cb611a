from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leavedesk.db.base import Base, IDMixin, TimestampMixin, value_enum
from leavedesk.models.enums import RequesterKind


class ActivityLog(IDMixin, TimestampMixin, Base):
    __tablename__ = "activity_logs"

    leave_request_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    actor_kind: Mapped[Optional[RequesterKind]] = mapped_column(
        value_enum(RequesterKind, "activity_actor_kind"),
        nullable=True,
    )
    actor_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payload_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
