import os
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test_clinic.db"

from clinic.main import app  # noqa: E402
from clinic.core.config import settings  # noqa: E402
from clinic.core.database import Base, get_db, redis_client  # noqa: E402
from clinic.core.security import UserRole, get_password_hash  # noqa: E402
from clinic.models.department import Department  # noqa: E402
from clinic.models.user import User  # noqa: E402
from clinic.schemas.doctor import DoctorCreate  # noqa: E402
from clinic.services.doctor_service import DoctorService  # noqa: E402

# Create test database
engine = create_engine(
    settings.TEST_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

TEST_PASSWORD = "TestPassword123"

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client():
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def slot_mode(monkeypatch):
    monkeypatch.setattr(settings, "BOOKING_MODE", "slot")

@pytest.fixture
def weekday_mode(monkeypatch):
    monkeypatch.setattr(settings, "BOOKING_MODE", "weekday")

def next_monday() -> date:
    """A Monday strictly after today."""
    day = date.today() + timedelta(days=7)
    return day - timedelta(days=day.weekday())

def create_user(db, email, role=UserRole.PATIENT, name="Test User", password=None):
    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password) if password else "!",
        role=role,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def create_department(db, name="CARDIOLOGY"):
    department = Department(name=name)
    db.add(department)
    db.commit()
    db.refresh(department)
    return department

def create_doctor(
    db,
    email="doctor@example.com",
    availability="MON-FRI 10am-6pm",
    available_slots=None,
    specialization="Cardiologist",
    dept_name="CARDIOLOGY",
):
    if not db.query(Department).filter(Department.name == dept_name).first():
        create_department(db, dept_name)
    return DoctorService(db).create_doctor(DoctorCreate(
        name="Dr. Test",
        email=email,
        password=TEST_PASSWORD,
        specialization=specialization,
        dept_name=dept_name,
        availability=availability,
        available_slots=available_slots,
    ))

def login(client, email, password=TEST_PASSWORD):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
