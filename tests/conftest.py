import os
import sys
from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime, time, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Settings require these; tests never connect to DATABASE_URL
os.environ.setdefault("DATABASE_URL", "sqlite:///./medibook_dev.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("LOG_FORMAT", "console")

from app.config import settings  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.database import get_db  # noqa: E402
from app.dependencies import get_triage_client  # noqa: E402
from app.main import app  # noqa: E402
from app.models import metadata, users  # noqa: E402
from app.schemas.triage import TriageResult, UrgencyLevel  # noqa: E402

# Test database URL - MUST be different from the application database
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./medibook_test.db")

# Additional safety: ensure we're not using the application database
if settings.database_url == TEST_DATABASE_URL:
    print("\n❌ CRITICAL ERROR: Test database URL is same as application database!")
    print("This would DROP all application data during tests.")
    print("Please set TEST_DATABASE_URL to a separate test database in .env")
    sys.exit(1)

if TEST_DATABASE_URL.startswith("postgresql://"):
    TEST_DATABASE_URL = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

# Use NullPool to avoid event loop issues between tests
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,  # Set to True for SQL debugging
    poolclass=NullPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class StubTriageClient:
    """Deterministic triage client recording the symptoms it was asked about."""

    def __init__(self, result: TriageResult):
        self.result = result
        self.calls: list[str] = []

    async def analyze_symptoms(self, symptoms: str) -> TriageResult:
        self.calls.append(symptoms)
        return self.result


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    # Drop tables after test
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def triage_stub() -> StubTriageClient:
    """Triage client returning an 'Urgent' assessment."""
    return StubTriageClient(
        TriageResult(
            severity_score=7,
            urgency=UrgencyLevel.URGENT,
            recommended_action="See a doctor today",
            formatted_message="🏥 SYMPTOM ANALYSIS REPORT",
        )
    )


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    triage_stub: StubTriageClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_triage_client] = lambda: triage_stub

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def create_user(
    db_session: AsyncSession,
    medical_id: str,
    full_name: str,
    role: str,
    specialization: str | None = None,
    is_active: bool = True,
) -> dict:
    """Insert a user row and return its data."""
    now = datetime.now(UTC)
    user_data = {
        "id": uuid4(),
        "medical_id": medical_id,
        "email": f"{medical_id.lower()}@example.com",
        "full_name": full_name,
        "role": role,
        "specialization": specialization,
        "is_active": is_active,
        "created_at": now,
        "updated_at": now,
    }
    await db_session.execute(insert(users).values(**user_data))
    await db_session.commit()
    return user_data


def headers_for(user: dict) -> dict:
    """Create authentication headers for a user."""
    token = create_access_token(
        data={"sub": user["medical_id"], "email": user["email"]},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> dict:
    return await create_user(db_session, "DOC001", "Dr. Asha Mehta", "doctor", "General Medicine")


@pytest_asyncio.fixture
async def other_doctor(db_session: AsyncSession) -> dict:
    return await create_user(db_session, "DOC002", "Dr. Chidi Okafor", "doctor", "Cardiology")


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession) -> dict:
    return await create_user(db_session, "PAT001", "Sam Lee", "patient")


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict:
    return await create_user(db_session, "PAT002", "Rita Gomez", "patient")


@pytest.fixture
def doctor_headers(doctor: dict) -> dict:
    return headers_for(doctor)


@pytest.fixture
def patient_headers(patient: dict) -> dict:
    return headers_for(patient)


@pytest.fixture
def sample_appointment_data(doctor: dict) -> dict:
    """Sample booking payload for testing."""
    return {
        "doctor_medical_id": doctor["medical_id"],
        "preferred_date": (date.today() + timedelta(days=2)).isoformat(),
        "preferred_time": time(10, 30).isoformat(),
        "symptoms": "Persistent dry cough for a week",
        "meeting_type": "offline",
    }


@pytest_asyncio.fixture
async def pending_appointment(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
) -> dict:
    """A freshly booked appointment."""
    response = await client.post(
        "/api/v1/appointments/",
        json=sample_appointment_data,
        headers=patient_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def approved_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    pending_appointment: dict,
) -> dict:
    """A booked appointment the doctor has approved."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/approve",
        json={"message": "See you then"},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest_asyncio.fixture
async def completed_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    approved_appointment: dict,
) -> dict:
    """An appointment that has been held."""
    response = await client.put(
        f"/api/v1/appointments/{approved_appointment['id']}/complete",
        headers=doctor_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest_asyncio.fixture
async def inactive_patient(db_session: AsyncSession) -> dict:
    return await create_user(db_session, "PAT900", "Old Account", "patient", is_active=False)


@pytest.fixture
def other_doctor_headers(other_doctor: dict) -> dict:
    return headers_for(other_doctor)


@pytest.fixture
def other_patient_headers(other_patient: dict) -> dict:
    return headers_for(other_patient)


@pytest.fixture
def inactive_patient_headers(inactive_patient: dict) -> dict:
    return headers_for(inactive_patient)
