import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import date, datetime, time, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Test database URL - MUST be different from production.
# Without TEST_DATABASE_URL the suite runs on a throwaway SQLite file.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL") or (
    "sqlite+aiosqlite:///" + str(Path(tempfile.gettempdir()) / f"ubs_booking_test_{os.getpid()}.db")
)

# Settings are read at import time, so configure them before importing the app
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-tests-only")
os.environ.setdefault("LOG_FORMAT", "console")

from ubs_booking.core.security import create_access_token  # noqa: E402
from ubs_booking.database import get_db, to_async_url  # noqa: E402
from ubs_booking.main import app  # noqa: E402
from ubs_booking.models import (  # noqa: E402
    doctor_ubs,
    doctors,
    metadata,
    patients,
    queue_counter,
    ubs,
)
from ubs_booking.models.queue_counter import COUNTER_ROW_ID  # noqa: E402
from ubs_booking.services.notification_service import RecipientKind, get_notifier  # noqa: E402

TEST_DATABASE_URL = to_async_url(TEST_DATABASE_URL)

# Use NullPool to avoid event loop issues between tests
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Wednesday; bookings in service tests happen the following Monday
FIXED_NOW = datetime(2026, 10, 14, 9, 0)
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


def fixed_clock() -> datetime:
    return FIXED_NOW


def upcoming(weekday: int) -> date:
    """A date at least a week ahead falling on ``weekday`` (0 = Sunday)."""
    today = date.today()
    current = (today.weekday() + 1) % 7
    return today + timedelta(days=(weekday - current) % 7 + 7)


class RecordingNotifier:
    """Notifier collecting messages in memory."""

    def __init__(self) -> None:
        self.sent: list[tuple[UUID, RecipientKind, str]] = []

    async def notify(self, recipient_id: UUID, recipient_kind: RecipientKind, message: str) -> None:
        self.sent.append((recipient_id, recipient_kind, message))


@pytest.fixture
def is_sqlite() -> bool:
    return TEST_DATABASE_URL.startswith("sqlite")


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)
        await conn.execute(insert(queue_counter).values(id=COUNTER_ROW_ID, current_count=0))

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def create_patient(db: AsyncSession, name: str = "Maria Silva") -> UUID:
    patient_id = uuid4()
    await db.execute(
        insert(patients).values(
            id=patient_id,
            name=name,
            cpf=str(patient_id.int)[:11],
            email=f"{patient_id.hex}@example.com",
            phone="+5511999990000",
        )
    )
    await db.commit()
    return patient_id


async def create_doctor(db: AsyncSession, name: str = "Dr. Joao Souza", specialty: str = "Clinico Geral") -> UUID:
    doctor_id = uuid4()
    await db.execute(
        insert(doctors).values(
            id=doctor_id,
            crm=f"CRM-{doctor_id.hex[:8]}",
            name=name,
            email=f"{doctor_id.hex}@clinic.example.com",
            specialty=specialty,
        )
    )
    await db.commit()
    return doctor_id


async def link_doctor(
    db: AsyncSession,
    doctor_id: UUID,
    ubs_id: UUID,
    linked_at: datetime | None = None,
    is_active: bool = True,
) -> None:
    values = {"doctor_id": doctor_id, "ubs_id": ubs_id, "is_active": is_active}
    if linked_at is not None:
        values["created_at"] = linked_at
    await db.execute(insert(doctor_ubs).values(**values))
    await db.commit()


@pytest_asyncio.fixture
async def unit_id(db_session: AsyncSession) -> UUID:
    """Create a test health unit."""
    ubs_id = uuid4()
    await db_session.execute(
        insert(ubs).values(
            id=ubs_id,
            name="UBS Vila Nova",
            address="Rua das Flores, 100",
            district="Vila Nova",
            city="Sao Paulo",
            state="SP",
        )
    )
    await db_session.commit()
    return ubs_id


@pytest_asyncio.fixture
async def doctor_id(db_session: AsyncSession, unit_id: UUID) -> UUID:
    """Create a doctor attending the test unit."""
    doctor = await create_doctor(db_session)
    await link_doctor(db_session, doctor, unit_id)
    return doctor


@pytest_asyncio.fixture
async def patient_id(db_session: AsyncSession) -> UUID:
    return await create_patient(db_session)


@pytest_asyncio.fixture
async def other_patient_id(db_session: AsyncSession) -> UUID:
    return await create_patient(db_session, name="Ana Costa")


def auth_headers_for(principal_id: UUID, role: str) -> dict:
    """Create authentication headers for a principal."""
    token = create_access_token(
        data={"sub": str(principal_id), "role": role},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(patient_id: UUID) -> dict:
    return auth_headers_for(patient_id, "patient")


@pytest.fixture
def other_patient_headers(other_patient_id: UUID) -> dict:
    return auth_headers_for(other_patient_id, "patient")


@pytest.fixture
def doctor_headers(doctor_id: UUID) -> dict:
    return auth_headers_for(doctor_id, "doctor")


@pytest.fixture
def monday_morning() -> dict:
    """Weekly window Monday 08:00-12:00."""
    return {"day_of_week": 1, "start_time": time(8, 0), "end_time": time(12, 0)}

