"""Roster management utilities.

Read-only directory queries used to populate the roll call screen, plus the
two write operations roll call needs: preparing the attendance sheet for a
lesson when a code is issued, and marking a student present when a code is
redeemed.
"""

import logging
from datetime import datetime
from typing import List, Set, Tuple

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import StudentNotOnRosterError
from models.roster import (
    AttendanceRecordModel,
    ClassEnrollmentModel,
    ModuleModel,
    TeachingAssignmentModel,
)
from schemas.roll_call import SessionDescriptor
from utils.code_registry import ActiveCode

logger = logging.getLogger(__name__)


class RosterManager:
    """Manages teaching assignments, modules and attendance records."""

    def __init__(self, db: Session):
        self.db = db

    def get_subjects_and_classes(self, teacher_id: str) -> Tuple[List[str], List[str]]:
        """Get a teacher's subjects and the classes of the first subject.

        Args:
            teacher_id: Teacher user ID.

        Returns:
            Tuple of (subjects, classes). Both empty if the teacher has no
            assignments.
        """
        rows = (
            self.db.query(TeachingAssignmentModel.subject)
            .filter(TeachingAssignmentModel.teacher_id == teacher_id)
            .distinct()
            .order_by(TeachingAssignmentModel.subject)
            .all()
        )
        subjects = [row.subject for row in rows]
        if not subjects:
            return [], []
        return subjects, self.get_specific_classes(teacher_id, subjects[0])

    def get_specific_classes(self, teacher_id: str, subject: str) -> List[str]:
        rows = (
            self.db.query(TeachingAssignmentModel.class_name)
            .filter(
                TeachingAssignmentModel.teacher_id == teacher_id,
                TeachingAssignmentModel.subject == subject,
            )
            .order_by(TeachingAssignmentModel.class_name)
            .all()
        )
        return [row.class_name for row in rows]

    def get_modules(self) -> List[ModuleModel]:
        return self.db.query(ModuleModel).order_by(ModuleModel.start_time).all()

    def teaches(self, teacher_id: str, subject: str, class_name: str) -> bool:
        return (
            self.db.query(TeachingAssignmentModel)
            .filter(
                TeachingAssignmentModel.teacher_id == teacher_id,
                TeachingAssignmentModel.subject == subject,
                TeachingAssignmentModel.class_name == class_name,
            )
            .first()
            is not None
        )

    def module_exists(self, module_id: int) -> bool:
        return (
            self.db.query(ModuleModel)
            .filter(ModuleModel.module_id == module_id)
            .first()
            is not None
        )

    def add_module(
        self, module_id: int, name: str, start_time: str, end_time: str
    ) -> ModuleModel:
        model = self.db.query(ModuleModel).filter(ModuleModel.module_id == module_id).first()
        if model is None:
            model = ModuleModel(module_id=module_id)
            self.db.add(model)
        model.name = name
        model.start_time = start_time
        model.end_time = end_time
        self.db.commit()
        return model

    def add_teaching_assignment(self, teacher_id: str, subject: str, class_name: str) -> None:
        if self.teaches(teacher_id, subject, class_name):
            return
        self.db.add(
            TeachingAssignmentModel(
                teacher_id=teacher_id, subject=subject, class_name=class_name
            )
        )
        self.db.commit()

    def enroll_student(self, class_name: str, student_id: str) -> None:
        existing = (
            self.db.query(ClassEnrollmentModel)
            .filter(
                ClassEnrollmentModel.class_name == class_name,
                ClassEnrollmentModel.student_id == student_id,
            )
            .first()
        )
        if existing:
            return
        self.db.add(ClassEnrollmentModel(class_name=class_name, student_id=student_id))
        self.db.commit()

    def prepare_students_for_attendance(self, active_code: ActiveCode) -> int:
        """Create absent attendance records for every student in the class.

        Students that already have a record for the lesson (e.g. a previous
        code for the same module today) keep it. If another code for the same
        lesson writes the records first, the unique constraint rejects this
        batch and the lesson counts as prepared.

        Args:
            active_code: The freshly issued code.

        Returns:
            Number of records created.
        """
        session = active_code.session
        date = active_code.created_at.date().isoformat()
        student_ids = [
            row.student_id
            for row in self.db.query(ClassEnrollmentModel.student_id)
            .filter(ClassEnrollmentModel.class_name == session.class_name)
            .all()
        ]
        existing = self._recorded_students(session, date)
        created = 0
        for student_id in student_ids:
            if student_id in existing:
                continue
            self.db.add(
                AttendanceRecordModel(
                    student_id=student_id,
                    subject=session.subject,
                    class_name=session.class_name,
                    module_id=session.module_id,
                    date=date,
                    attendance_code=active_code.code,
                    is_present=False,
                )
            )
            created += 1
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "Attendance records for %s/%s module %s on %s were created concurrently",
                session.subject,
                session.class_name,
                session.module_id,
                date,
            )
            return 0
        logger.info(
            "Prepared %d attendance record(s) for %s/%s module %s on %s",
            created,
            session.subject,
            session.class_name,
            session.module_id,
            date,
        )
        return created

    def _recorded_students(self, session: SessionDescriptor, date: str) -> Set[str]:
        rows = (
            self.db.query(AttendanceRecordModel.student_id)
            .filter(
                AttendanceRecordModel.subject == session.subject,
                AttendanceRecordModel.class_name == session.class_name,
                AttendanceRecordModel.module_id == session.module_id,
                AttendanceRecordModel.date == date,
            )
            .all()
        )
        return {row.student_id for row in rows}

    def register_attendance(self, student_id: str, active_code: ActiveCode) -> str:
        """Mark a student present for the lesson of a code.

        Args:
            student_id: Student user ID.
            active_code: The redeemed code.

        Returns:
            Confirmation message for the student.

        Raises:
            StudentNotOnRosterError: If the student has no attendance record
                for the lesson.
        """
        session = active_code.session
        record = (
            self.db.query(AttendanceRecordModel)
            .filter(
                AttendanceRecordModel.student_id == student_id,
                AttendanceRecordModel.subject == session.subject,
                AttendanceRecordModel.class_name == session.class_name,
                AttendanceRecordModel.module_id == session.module_id,
                AttendanceRecordModel.date == active_code.created_at.date().isoformat(),
            )
            .first()
        )
        if record is None:
            raise StudentNotOnRosterError(student_id, session.class_name)

        record.is_present = True
        record.attendance_code = active_code.code
        record.registered_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info(
            "Student %s marked present in %s/%s module %s",
            student_id,
            session.subject,
            session.class_name,
            session.module_id,
        )
        return f"Attendance registered for {session.subject} ({session.class_name})"

