import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_EVENTS_ENABLED"] = "false"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tutoring_scheduler import models  # noqa: E402
from tutoring_scheduler.core.rbac import Actor, Role  # noqa: E402
from tutoring_scheduler.db import Base  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_teacher(db):
    def _make(first_name="Ana", last_name="Lopez", max_capacity=1, user_id=None):
        teacher = models.Teacher(
            first_name=first_name,
            last_name=last_name,
            max_capacity=max_capacity,
            user_id=user_id,
        )
        db.add(teacher)
        db.commit()
        db.refresh(teacher)
        return teacher

    return _make


@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(first_name=None, last_name="Student", user_id=None):
        counter["n"] += 1
        student = models.Student(
            first_name=first_name or f"Student{counter['n']}",
            last_name=last_name,
            user_id=user_id,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _make


@pytest.fixture
def add_availability(db):
    def _add(teacher, day_of_week, start, end):
        slot = models.Availability(
            teacher_id=teacher.id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
        )
        db.add(slot)
        db.commit()
        return slot

    return _add


@pytest.fixture
def teacher(make_teacher, add_availability):
    """Teacher with Monday 09:00-13:00 and capacity 1."""
    t = make_teacher(user_id="teacher.ana", max_capacity=1)
    add_availability(t, 1, "09:00", "13:00")
    return t


@pytest.fixture
def admin():
    return Actor(user_id="admin", roles=frozenset({Role.ADMIN.value}))
