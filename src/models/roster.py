"""Roster database models.

Teaching assignments, class enrollments, school-day modules and the
attendance records that roll call fills in.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint
from .base import Base


class TeachingAssignmentModel(Base):
    """A teacher teaching a subject to a class."""

    __tablename__ = "teaching_assignments"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "subject", "class_name", name="uq_teaching_assignment"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True)
    subject = Column(String, nullable=False, index=True)
    class_name = Column(String, nullable=False)


class ClassEnrollmentModel(Base):
    __tablename__ = "class_enrollments"
    __table_args__ = (
        UniqueConstraint("class_name", "student_id", name="uq_class_enrollment"),
    )

    id = Column(Integer, primary_key=True, index=True)
    class_name = Column(String, nullable=False, index=True)
    student_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True)


class ModuleModel(Base):
    """A time interval of the school day, e.g. 1st module 08:00-09:30."""

    __tablename__ = "modules"

    module_id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    start_time = Column(String, nullable=False)  # HH:MM
    end_time = Column(String, nullable=False)  # HH:MM


class AttendanceRecordModel(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "subject",
            "class_name",
            "module_id",
            "date",
            name="uq_attendance_records_student_session",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True)
    subject = Column(String, nullable=False)
    class_name = Column(String, nullable=False, index=True)
    module_id = Column(Integer, ForeignKey("modules.module_id"), nullable=False)
    date = Column(String, nullable=False)  # ISO date
    attendance_code = Column(String, nullable=True)
    is_present = Column(Boolean, nullable=False, default=False)
    registered_at = Column(String, nullable=True)  # ISO format string
