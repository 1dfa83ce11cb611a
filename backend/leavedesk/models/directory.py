"""Read-only organisational reference data.

Rows are maintained by the campus directory; the leave core only reads them to
bind approvers to stages.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.db.base import Base, IDMixin


class Department(IDMixin, Base):
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    hod_staff_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id", use_alter=True),
        nullable=True,
    )

    batches: Mapped[List["Batch"]] = relationship(back_populates="department")


class Batch(IDMixin, Base):
    __tablename__ = "batches"

    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), nullable=False, index=True)
    batch_name: Mapped[str] = mapped_column(String(100), nullable=False)

    department: Mapped[Department] = relationship(back_populates="batches")
    sections: Mapped[List["Section"]] = relationship(back_populates="batch")


class Section(IDMixin, Base):
    __tablename__ = "sections"

    batch_id: Mapped[int] = mapped_column(ForeignKey("batches.id"), nullable=False, index=True)
    section_name: Mapped[str] = mapped_column(String(50), nullable=False)
    class_incharge_staff_id: Mapped[Optional[int]] = mapped_column(ForeignKey("staff.id"), nullable=True)

    batch: Mapped[Batch] = relationship(back_populates="sections")


class Staff(IDMixin, Base):
    __tablename__ = "staff"

    staff_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), nullable=False, index=True)


class Student(IDMixin, Base):
    __tablename__ = "students"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    roll_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    register_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), nullable=False, index=True)
    batch_id: Mapped[Optional[int]] = mapped_column(ForeignKey("batches.id"), nullable=True, index=True)
    section_id: Mapped[Optional[int]] = mapped_column(ForeignKey("sections.id"), nullable=True, index=True)
    mentor_staff_id: Mapped[Optional[int]] = mapped_column(ForeignKey("staff.id"), nullable=True)
