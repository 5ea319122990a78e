import os
import pathlib
import sys
from datetime import datetime, timedelta
from types import SimpleNamespace

# Keep the module-level engine in memory and the sweeper idle during tests
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CODE_SWEEP_INTERVAL_SECONDS"] = "3600"

SYS_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = SYS_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import pytest
import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models.base import Base
import models  # noqa: F401
from schemas.roll_call import SessionDescriptor
from utils.code_registry import ActiveCodeRegistry
from utils.roster_manager import RosterManager
from utils.user_manager import UserManager

PASSWORD = "correct horse"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 8, 9, 0, tzinfo=pytz.utc))


@pytest.fixture
def registry(clock):
    return ActiveCodeRegistry(ttl_seconds=600, clock=clock)


@pytest.fixture
def math_session():
    return SessionDescriptor(subject="Math", class_name="3.A", module_id=1)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def school(db):
    """Teacher 'tea' teaches Math to 3.A and Physics to 3.B.

    stu1 and stu2 are enrolled in 3.A; stu3 is in no class.
    """
    users = UserManager(db, bcrypt_rounds=4)
    roster = RosterManager(db)

    teacher = users.create_user("tea", PASSWORD, "teacher", display_name="Teacher")
    students = [users.create_user(f"stu{i}", PASSWORD, "student") for i in (1, 2, 3)]

    roster.add_module(1, "1. modul", "08:00", "09:30")
    roster.add_module(2, "2. modul", "09:45", "11:15")
    roster.add_teaching_assignment(teacher.user_id, "Math", "3.A")
    roster.add_teaching_assignment(teacher.user_id, "Physics", "3.B")
    roster.enroll_student("3.A", students[0].user_id)
    roster.enroll_student("3.A", students[1].user_id)

    return SimpleNamespace(
        teacher=teacher,
        stu1=students[0],
        stu2=students[1],
        stu3=students[2],
    )
