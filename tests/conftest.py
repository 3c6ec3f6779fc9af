import os
from datetime import datetime, timezone
from types import SimpleNamespace

TEST_DB_FILE = "test_assessments.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# the app's own engine (used by the startup hook) must point at the test DB too
os.environ["DATABASE_URL"] = TEST_DB_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from assessment_api.core.deps import get_db, get_now  # noqa: E402
from assessment_api.core.security import create_access_token  # noqa: E402
from assessment_api.db.base_class import Base  # noqa: E402
from assessment_api.main import app  # noqa: E402
from assessment_api.models.assessment import Assessment  # noqa: E402
from assessment_api.models.course import Course  # noqa: E402
from assessment_api.models.submission import Submission  # noqa: E402
from assessment_api.models.user import User  # noqa: E402

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 2024-01-05, well before the default due date used by the tests
DEFAULT_NOW = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)
DEFAULT_DUE = datetime(2024, 1, 10, 0, 0, tzinfo=timezone.utc)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FrozenClock:
    """Stands in for get_now; tests move ``now`` to simulate time passing."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def seed():
    """Seed a clean minimal dataset for each test and hand back the ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Assessment).delete()
        db.query(Course).delete()
        db.query(User).delete()
        db.commit()

        student = User(email="student1@university.edu", full_name="Student One")
        student2 = User(email="student2@university.edu", full_name="Student Two")
        instructor = User(
            email="instructor1@university.edu",
            full_name="Instructor One",
            is_instructor=True,
        )
        other_instructor = User(
            email="instructor2@university.edu",
            full_name="Instructor Two",
            is_instructor=True,
        )
        admin = User(email="admin@university.edu", full_name="Admin", is_admin=True)
        db.add_all([student, student2, instructor, other_instructor, admin])
        db.commit()

        course = Course(title="CS5004", instructor_id=instructor.id)
        other_course = Course(title="CS5800", instructor_id=other_instructor.id)
        db.add_all([course, other_course])
        db.commit()

        yield SimpleNamespace(
            student=student.id,
            student2=student2.id,
            instructor=instructor.id,
            other_instructor=other_instructor.id,
            admin=admin.id,
            course=course.id,
            other_course=other_course.id,
        )
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FrozenClock(DEFAULT_NOW)


@pytest.fixture()
def client(clock):
    """Test client that uses the test DB session and a frozen clock."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_header(user_id: int) -> dict:
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


def assessment_payload(course_id: int, **overrides) -> dict:
    payload = {
        "title": "HW1",
        "description": "Linked lists",
        "instructions": "Implement a doubly linked list.",
        "course_id": course_id,
        "type": "assignment",
        "max_points": 100,
        "due_date": DEFAULT_DUE.isoformat(),
        "allow_late_submission": True,
        "late_penalty": 20,
        "submission_type": "text",
    }
    payload.update(overrides)
    return payload


def create_assessment(client, user_id: int, course_id: int, *, publish: bool = False, **overrides) -> dict:
    r = client.post(
        "/assessments",
        headers=auth_header(user_id),
        json=assessment_payload(course_id, **overrides),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    if publish:
        r = client.post(f"/assessments/{body['id']}/publish", headers=auth_header(user_id))
        assert r.status_code == 200, r.text
        body = r.json()
    return body


def submit(client, user_id: int, assessment_id: int, content: dict | None = None):
    return client.post(
        f"/assessments/{assessment_id}/submit",
        headers=auth_header(user_id),
        json={"content": content or {"text": "my answer"}},
    )
