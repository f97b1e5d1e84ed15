import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-scheduling-suite")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace
from typing import Generator
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core import clock
from app.core.security import create_access_token
from app.infrastructure import notifications as channels
from app.infrastructure.database import get_db, Base
from app.domain import models  # noqa: F401
from app.domain.auth.models import User, UserRole
from app.domain.auth.service import AuthenticationService
from app.domain.clinics.service import ClinicService
from app.domain.patients.models import Patient
from app.domain.appointments.service import DoctorScheduleService


# Monday 08:00, an hour before the test clinic opens
FIXED_NOW = datetime(2030, 1, 7, 8, 0)
TODAY = FIXED_NOW.date()

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(
    bind=test_engine, autocommit=False, autoflush=False, expire_on_commit=False
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "auth: mark test as an authentication test")
    config.addinivalue_line("markers", "appointments: mark test as an appointments test")
    config.addinivalue_line("markers", "schedules: mark test as a dentist schedule test")
    config.addinivalue_line("markers", "staff_schedules: mark test as a staff schedule test")
    config.addinivalue_line("markers", "notifications: mark test as a notifications test")


def next_weekday(weekday: int, after: date = TODAY) -> date:
    """First date strictly after ``after`` falling on ``weekday`` (0=Monday)"""
    days_ahead = (weekday - after.weekday() - 1) % 7 + 1
    return after + timedelta(days=days_ahead)


def auth_headers(db: Session, user: User) -> dict:
    claims = AuthenticationService(db).build_claims(user)
    return {"Authorization": f"Bearer {create_access_token(str(user.id), claims)}"}


def make_user(db: Session, email: str, role: UserRole, first_name: str, last_name: str, **extra) -> User:
    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
        **extra
    )
    user.set_password("password123")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    """Freeze the scheduling clock at FIXED_NOW."""
    monkeypatch.setattr(clock, "now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture(autouse=True)
def channel_mocks(monkeypatch) -> SimpleNamespace:
    """Keep email, SMS and reminder dispatch off the worker queue."""
    mocks = SimpleNamespace(enqueue_delivery=MagicMock(), schedule_reminder=MagicMock())
    monkeypatch.setattr(channels, "enqueue_delivery", mocks.enqueue_delivery)
    monkeypatch.setattr(channels, "schedule_reminder", mocks.schedule_reminder)
    return mocks


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def clinic(db_session: Session):
    """Open Monday-Friday 09:00-17:00 and Saturday 09:00-13:00, closed Sunday."""
    weekdays = [
        {"day_of_week": day, "open_time": time(9, 0), "close_time": time(17, 0), "is_closed": False}
        for day in range(5)
    ]
    saturday = {"day_of_week": 5, "open_time": time(9, 0), "close_time": time(13, 0), "is_closed": False}
    return ClinicService(db_session).create_clinic(
        {"name": "Harbour Dental", "code": "HRB", "address": "1 Quay Street", "timezone": "UTC"},
        weekdays + [saturday]
    )


@pytest.fixture
def other_clinic(db_session: Session):
    hours = [
        {"day_of_week": day, "open_time": time(8, 0), "close_time": time(18, 0), "is_closed": False}
        for day in range(6)
    ]
    return ClinicService(db_session).create_clinic(
        {"name": "Hillside Dental", "code": "HIL", "timezone": "UTC"}, hours
    )


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin@harbourdental.com", UserRole.ADMIN, "Ada", "Admin")


@pytest.fixture
def dentist(db_session: Session, clinic) -> User:
    """Works Monday-Saturday at the clinic, lunch 12:00-13:00 on weekdays."""
    user = make_user(
        db_session, "adams@harbourdental.com", UserRole.DENTIST, "Alice", "Adams",
        specialization="General Dentistry"
    )
    ClinicService(db_session).assign_staff(clinic.id, user.id)
    schedules = DoctorScheduleService(db_session)
    for day in range(5):
        schedules.create_schedule(
            user.id, clinic.id, day, time(9, 0), time(17, 0),
            effective_from=TODAY, break_start=time(12, 0), break_end=time(13, 0)
        )
    schedules.create_schedule(user.id, clinic.id, 5, time(9, 0), time(13, 0), effective_from=TODAY)
    db_session.refresh(user)
    return user


@pytest.fixture
def second_dentist(db_session: Session, clinic) -> User:
    """Works weekday mornings only."""
    user = make_user(
        db_session, "brown@harbourdental.com", UserRole.DENTIST, "Bob", "Brown",
        specialization="Orthodontics"
    )
    ClinicService(db_session).assign_staff(clinic.id, user.id)
    schedules = DoctorScheduleService(db_session)
    for day in range(5):
        schedules.create_schedule(user.id, clinic.id, day, time(9, 0), time(12, 0), effective_from=TODAY)
    db_session.refresh(user)
    return user


@pytest.fixture
def staff_user(db_session: Session, clinic) -> User:
    user = make_user(db_session, "nurse@harbourdental.com", UserRole.STAFF, "Nora", "Nurse", phone="+15550001")
    ClinicService(db_session).assign_staff(clinic.id, user.id)
    db_session.refresh(user)
    return user


@pytest.fixture
def patient(db_session: Session) -> Patient:
    user = make_user(db_session, "pat@example.com", UserRole.PATIENT, "Pat", "Patient")
    record = Patient(
        patient_number="P-0001",
        user_id=user.id,
        first_name="Pat",
        last_name="Patient",
        email="pat@example.com",
        phone="+15550002",
        reminder_hours=[24, 2],
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def other_patient(db_session: Session) -> Patient:
    record = Patient(
        patient_number="P-0002",
        first_name="Quinn",
        last_name="Other",
        email="quinn@example.com",
        notify_email=False,
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def admin_headers(db_session: Session, admin_user: User) -> dict:
    return auth_headers(db_session, admin_user)


@pytest.fixture
def staff_headers(db_session: Session, staff_user: User) -> dict:
    return auth_headers(db_session, staff_user)


@pytest.fixture
def dentist_headers(db_session: Session, dentist: User) -> dict:
    return auth_headers(db_session, dentist)


@pytest.fixture
def patient_headers(db_session: Session, patient: Patient) -> dict:
    return auth_headers(db_session, patient.user)
