import pytest

from core.exceptions import StudentNotOnRosterError
from models.roster import AttendanceRecordModel
from utils.roster_manager import RosterManager


class StaleReadRosterManager(RosterManager):
    """Sees no existing records, like a preparer racing another code."""

    def _recorded_students(self, session, date):
        return set()


def records(db):
    db.expire_all()
    return db.query(AttendanceRecordModel).order_by(AttendanceRecordModel.id).all()


def test_prepare_creates_absent_records_for_enrolled_students(db, registry, school, math_session):
    entry = registry.try_register("AB12", school.teacher.user_id, math_session)

    created = RosterManager(db).prepare_students_for_attendance(entry)

    assert created == 2
    rows = records(db)
    assert {r.student_id for r in rows} == {school.stu1.user_id, school.stu2.user_id}
    assert all(r.date == "2024-01-08" and not r.is_present for r in rows)


def test_prepare_twice_for_same_lesson_keeps_existing_records(
    db, registry, school, math_session
):
    roster = RosterManager(db)
    first = registry.try_register("AB12", school.teacher.user_id, math_session)
    second = registry.try_register("CD34", school.teacher.user_id, math_session)

    roster.prepare_students_for_attendance(first)
    roster.register_attendance(school.stu1.user_id, first)

    assert roster.prepare_students_for_attendance(second) == 0
    assert len(records(db)) == 2


def test_concurrent_prepare_for_same_lesson_counts_as_prepared(
    db, session_factory, registry, school, math_session
):
    first = registry.try_register("AB12", school.teacher.user_id, math_session)
    second = registry.try_register("CD34", school.teacher.user_id, math_session)
    RosterManager(db).prepare_students_for_attendance(first)

    with session_factory() as other:
        racing = StaleReadRosterManager(other)
        assert racing.prepare_students_for_attendance(second) == 0
        # The session is usable again after the rejected batch
        assert racing.teaches(school.teacher.user_id, "Math", "3.A")

    rows = records(db)
    assert len(rows) == 2
    assert {r.attendance_code for r in rows} == {"AB12"}


def test_register_attendance_marks_student_present(db, registry, school, math_session):
    roster = RosterManager(db)
    entry = registry.try_register("AB12", school.teacher.user_id, math_session)
    roster.prepare_students_for_attendance(entry)

    message = roster.register_attendance(school.stu2.user_id, entry)

    assert message == "Attendance registered for Math (3.A)"
    present = [r.student_id for r in records(db) if r.is_present]
    assert present == [school.stu2.user_id]


def test_register_attendance_without_record(db, registry, school, math_session):
    roster = RosterManager(db)
    entry = registry.try_register("AB12", school.teacher.user_id, math_session)
    roster.prepare_students_for_attendance(entry)

    with pytest.raises(StudentNotOnRosterError) as excinfo:
        roster.register_attendance(school.stu3.user_id, entry)

    assert excinfo.value.class_name == "3.A"


def test_teaches_and_modules(db, school):
    roster = RosterManager(db)

    assert roster.teaches(school.teacher.user_id, "Physics", "3.B")
    assert not roster.teaches(school.teacher.user_id, "Physics", "3.A")
    assert roster.module_exists(2)
    assert not roster.module_exists(3)
    assert [m.module_id for m in roster.get_modules()] == [1, 2]
