import pytest

import main
from models.roster import ClassEnrollmentModel, ModuleModel, TeachingAssignmentModel
from models.user import UserModel
from utils.roster_manager import RosterManager
from utils.user_manager import UserManager

SEED = {
    "users": [
        {"username": "tea", "password": "secret", "role": "teacher", "display_name": "Ms. Tea"},
        {"username": "stu", "password": "secret", "role": "student"},
    ],
    "modules": [
        {"module_id": 1, "name": "1. modul", "start_time": "08:00", "end_time": "09:30"},
    ],
    "assignments": [{"teacher": "tea", "subject": "Math", "class_name": "3.A"}],
    "enrollments": [{"student": "stu", "class_name": "3.A"}],
}


@pytest.fixture(autouse=True)
def seed_database(monkeypatch, session_factory):
    monkeypatch.setattr(main, "SessionLocal", session_factory)


def counts(db):
    return {
        model.__tablename__: db.query(model).count()
        for model in (UserModel, ModuleModel, TeachingAssignmentModel, ClassEnrollmentModel)
    }


def test_seed_loads_users_and_roster(db):
    main.seed(SEED)

    assert counts(db) == {
        "users": 2,
        "modules": 1,
        "teaching_assignments": 1,
        "class_enrollments": 1,
    }
    teacher = UserManager(db).authenticate("tea", "secret")
    assert teacher.role == "teacher"
    assert teacher.display_name == "Ms. Tea"
    assert RosterManager(db).teaches(teacher.user_id, "Math", "3.A")


def test_reseeding_keeps_existing_rows(db):
    main.seed(SEED)
    before = UserManager(db).get_user_by_username("stu")

    changed = dict(SEED, users=[{"username": "stu", "password": "changed", "role": "student"}])
    main.seed(changed)

    db.expire_all()
    assert counts(db)["users"] == 2
    assert counts(db)["teaching_assignments"] == 1
    assert counts(db)["class_enrollments"] == 1
    after = UserManager(db).get_user_by_username("stu")
    assert after.user_id == before.user_id
    assert after.password_hash == before.password_hash


def test_seed_updates_module_times(db):
    main.seed(SEED)
    moved = dict(
        SEED,
        modules=[{"module_id": 1, "name": "1. modul", "start_time": "08:15", "end_time": "09:45"}],
    )

    main.seed(moved)

    db.expire_all()
    module = db.query(ModuleModel).one()
    assert (module.start_time, module.end_time) == ("08:15", "09:45")


def test_assignment_for_unknown_user(db):
    data = {"assignments": [{"teacher": "ghost", "subject": "Math", "class_name": "3.A"}]}

    with pytest.raises(ValueError, match="Unknown user: ghost"):
        main.seed(data)


def test_main_reads_seed_file(tmp_path, monkeypatch, db):
    seed_file = tmp_path / "school.json"
    seed_file.write_text(
        '{"modules": [{"module_id": 2, "name": "2. modul",'
        ' "start_time": "09:45", "end_time": "11:15"}]}',
        encoding="utf-8",
    )
    monkeypatch.setattr("sys.argv", ["main", str(seed_file)])

    main.main()

    assert db.query(ModuleModel.module_id).scalar() == 2
