from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from dataclasses import dataclass  # noqa: E402
from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from leavedesk.models import Base, Batch, Department, Section, Staff, Student  # noqa: E402


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@dataclass
class Directory:
    department: Department
    hod: Staff
    class_incharge: Staff
    mentor: Staff
    lecturer: Staff
    batch: Batch
    section: Section
    student: Student


@pytest.fixture()
def directory(db: Session) -> Directory:
    """One department with a HOD, a section with a class incharge, and a mentored student."""
    department = Department(name="Computer Science")
    db.add(department)
    db.flush()

    hod = Staff(staff_name="Dr. Meena", email="hod@example.edu", department_id=department.id)
    class_incharge = Staff(staff_name="Prof. Arun", email="ci@example.edu", department_id=department.id)
    mentor = Staff(staff_name="Prof. Divya", email="mentor@example.edu", department_id=department.id)
    lecturer = Staff(staff_name="Mr. Karthik", email="karthik@example.edu", department_id=department.id)
    db.add_all([hod, class_incharge, mentor, lecturer])
    db.flush()
    department.hod_staff_id = hod.id

    batch = Batch(department_id=department.id, batch_name="2022-2026")
    db.add(batch)
    db.flush()
    section = Section(batch_id=batch.id, section_name="A", class_incharge_staff_id=class_incharge.id)
    db.add(section)
    db.flush()

    student = Student(
        name="Priya S",
        roll_no="22CS041",
        register_no="9131220041",
        department_id=department.id,
        batch_id=batch.id,
        section_id=section.id,
        mentor_staff_id=mentor.id,
    )
    db.add(student)
    db.commit()
    return Directory(
        department=department,
        hod=hod,
        class_incharge=class_incharge,
        mentor=mentor,
        lecturer=lecturer,
        batch=batch,
        section=section,
        student=student,
    )


def next_weekday(start: date, weekday: int) -> date:
    """First date on or after ``start`` falling on ``weekday`` (Monday is 0)."""
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture()
def future_monday() -> date:
    # Far enough ahead that the institution's "today" never catches up during a run.
    return next_weekday(date.today() + timedelta(days=30), 0)
