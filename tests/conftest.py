"""Pytest fixtures for async FastAPI testing.

Loads `.env.test` before any `telecare` module reads settings, initializes a
clean test database, and provides an `AsyncClient` for integration tests.
Email and SMS run on their console backends, so nothing leaves the process.
"""
import pathlib
import uuid
from datetime import date, timedelta

import pytest
from dotenv import load_dotenv

ROOT = pathlib.Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=str(ROOT / ".env.test"), override=True)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def prepare_database():
    """Create clean schema for the test session."""
    from telecare.core.database import engine, Base

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(prepare_database):
    """Yield a SQLAlchemy session for direct DB access in tests."""
    from telecare.core.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
async def async_client(prepare_database):
    """Provide an httpx AsyncClient configured with the FastAPI app."""
    from httpx import AsyncClient, ASGITransport
    from telecare.main import create_app

    app = create_app()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


# ============================================================================
# DATA FACTORIES
# ============================================================================

@pytest.fixture
def make_patient(db_session):
    from telecare.models.user import User
    from telecare.models.patient import Patient

    def _make(name: str = "Test Patient", phone: str | None = None) -> Patient:
        user = User(
            email=f"pat_{uuid.uuid4().hex[:8]}@example.com",
            phone=phone,
            name=name,
            password_hash="hashed_secret",
            role="patient",
        )
        patient = Patient(user=user)
        db_session.add_all([user, patient])
        db_session.commit()
        return patient

    return _make


@pytest.fixture
def make_doctor(db_session):
    from telecare.models.user import User
    from telecare.models.doctor import Doctor, empty_distribution

    def _make(
        name: str = "Jane Smith",
        specialty: str = "Cardiologist",
        degree: str = "MBBS, MD",
        available_from: str | None = "09:00",
        available_to: str | None = "10:00",
        profile_picture_url: str | None = None,
    ) -> Doctor:
        user = User(
            email=f"doc_{uuid.uuid4().hex[:8]}@example.com",
            name=name,
            password_hash="hashed_secret",
            role="doctor",
            profile_picture_url=profile_picture_url,
        )
        doctor = Doctor(
            user=user,
            specialty=specialty,
            degree=degree,
            years_of_experience=8,
            registration_number=f"REG{uuid.uuid4().hex[:8]}",
            consultation_fee=500,
            available_from=available_from,
            available_to=available_to,
            rating_distribution=empty_distribution(),
        )
        db_session.add_all([user, doctor])
        db_session.commit()
        return doctor

    return _make


@pytest.fixture
def make_appointment(db_session):
    from telecare.models.appointment import Appointment

    def _make(
        patient,
        doctor,
        days_ahead: int = 2,
        slot: str = "09:00",
        status: str = "confirmed",
        consultation_status: str = "not_started",
        reason: str = "Chest pain",
    ) -> Appointment:
        appt = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=date.today() + timedelta(days=days_ahead),
            appointment_time=slot,
            appointment_slot=slot,
            reason=reason,
            status=status,
            consultation_status=consultation_status,
        )
        db_session.add(appt)
        db_session.commit()
        return appt

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a Patient/Doctor profile or a bare User."""
    from telecare.core.security import create_access_token

    def _headers(profile_or_user) -> dict:
        user = getattr(profile_or_user, "user", None) or profile_or_user
        token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
