"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- HTTP client for API testing
- Test database engine and sessions
- Patient and doctor profiles
- A mocked triage service and sample AI reports
"""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dermtriage.auth import bearer_scheme, verify_bearer_token
from dermtriage.database import Base, Database, get_db
from dermtriage.dependencies import get_report_events, get_session_maker, get_triage_service
from dermtriage.main import app
from dermtriage.models.profile import DoctorProfile, PatientProfile, VerificationStatus
from dermtriage.schemas.report import AIReport, PotentialCondition
from dermtriage.services.feed import ReportEvents

PATIENT_ID = "patient-1"
OTHER_PATIENT_ID = "patient-2"
DOCTOR_ID = "doctor-1"
OTHER_DOCTOR_ID = "doctor-2"
PENDING_DOCTOR_ID = "doctor-pending"

PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD"


async def stub_verify_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Stub auth dependency: the bearer token is the user id."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )
    return credentials.credentials


def auth_for(user_id: str) -> dict[str, str]:
    """Authentication headers acting as ``user_id``."""
    return {"Authorization": f"Bearer {user_id}"}


def make_ai_report(**overrides) -> AIReport:
    """Create a sample AIReport for mocking the hosted model."""
    data = {
        "potential_conditions": [
            PotentialCondition(
                name="Eczema",
                likelihood="High",
                confidence=0.82,
                description="Dry, itchy, inflamed patches of skin.",
            ),
            PotentialCondition(
                name="Contact dermatitis",
                likelihood="Medium",
                confidence=0.41,
                description="Rash caused by contact with an irritant.",
            ),
        ],
        "report": "Most likely eczema. Observations:\n- erythema\n- scaling",
        "home_remedies": "Moisturize twice daily and avoid hot showers.",
        "medical_recommendation": "See a dermatologist if it persists beyond two weeks.",
        "doctor_consultation_suggestion": True,
    }
    data.update(overrides)
    return AIReport(**data)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_database():
    """Create a test database with automatic schema management.

    Uses DATABASE_TEST_URL env var if set, otherwise an in-memory SQLite
    database private to the test.
    """
    db_url = os.environ.get("DATABASE_TEST_URL", "sqlite+aiosqlite:///:memory:")
    database = Database(db_url)
    await database.create_all()

    yield database

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.dispose()


@pytest.fixture
def test_engine(test_database):
    return test_database.engine


@pytest.fixture
def session_maker(test_database) -> async_sessionmaker[AsyncSession]:
    return test_database.session_maker


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """Create test database session with automatic rollback.

    Each test gets a fresh session that rolls back on completion.
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Profile Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def profiles(db_session: AsyncSession) -> dict[str, object]:
    """Two patients, two approved doctors and one unverified doctor."""
    rows = {
        PATIENT_ID: PatientProfile(
            uid=PATIENT_ID,
            email="asha@example.com",
            name="Asha Rao",
            age=34,
            gender="female",
            region="Kerala",
            skin_tone="Type IV",
        ),
        OTHER_PATIENT_ID: PatientProfile(
            uid=OTHER_PATIENT_ID,
            email="ben@example.com",
            name="Ben Cole",
            age=52,
            gender="male",
        ),
        DOCTOR_ID: DoctorProfile(
            uid=DOCTOR_ID,
            email="dr.lee@example.com",
            name="Dr. Lee",
            age=45,
            gender="female",
            experience=15,
            verification_status=VerificationStatus.APPROVED,
        ),
        OTHER_DOCTOR_ID: DoctorProfile(
            uid=OTHER_DOCTOR_ID,
            email="dr.moss@example.com",
            name="Dr. Moss",
            age=39,
            gender="male",
            experience=8,
            verification_status=VerificationStatus.APPROVED,
        ),
        PENDING_DOCTOR_ID: DoctorProfile(
            uid=PENDING_DOCTOR_ID,
            email="dr.new@example.com",
            name="Dr. New",
            age=30,
            gender="female",
        ),
    }
    db_session.add_all(rows.values())
    await db_session.commit()
    return rows


# =============================================================================
# Triage Fixtures
# =============================================================================


@pytest.fixture
def ai_report() -> AIReport:
    return make_ai_report()


@pytest.fixture
def triage_mock(ai_report: AIReport) -> AsyncMock:
    """Mock TriageService returning ``ai_report`` for every generation."""
    mock = AsyncMock()
    mock.generate_report.return_value = ai_report
    return mock


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def report_events() -> ReportEvents:
    return ReportEvents()


@pytest_asyncio.fixture
async def client(session_maker, triage_mock, report_events):
    """Async test client for FastAPI app with test database.

    Overrides the app's database, auth, triage and event dependencies so API
    tests share the fixtures' database and never call the hosted model.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[verify_bearer_token] = stub_verify_bearer_token
    app.dependency_overrides[get_triage_service] = lambda: triage_mock
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_report_events] = lambda: report_events

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
