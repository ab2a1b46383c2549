import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime, time, timedelta
from uuid import uuid4

import fakeredis
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import MetaData, insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# The application settings require these; tests never touch the real stores
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./frontdesk.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from frontdesk.config import WEEKDAYS, settings  # noqa: E402
from frontdesk.core.redis_client import get_redis_client  # noqa: E402
from frontdesk.core.security import create_access_token  # noqa: E402
from frontdesk.database import get_db  # noqa: E402
from frontdesk.dependencies import get_appointment_service  # noqa: E402
from frontdesk.main import app  # noqa: E402
from frontdesk.models.appointments import metadata as appointments_metadata  # noqa: E402
from frontdesk.models.doctors import doctors  # noqa: E402
from frontdesk.models.doctors import metadata as doctors_metadata  # noqa: E402
from frontdesk.models.patients import metadata as patients_metadata  # noqa: E402
from frontdesk.models.patients import patients  # noqa: E402
from frontdesk.services.appointment_service import AppointmentService  # noqa: E402
from frontdesk.services.appointment_store import AppointmentStore  # noqa: E402
from frontdesk.services.directory_service import DirectoryService  # noqa: E402
from frontdesk.services.queue_sequencer import QueueSequencer  # noqa: E402

# Combine all metadata
metadata = MetaData()
for table in patients_metadata.tables.values():
    table.to_metadata(metadata)
for table in doctors_metadata.tables.values():
    table.to_metadata(metadata)
for table in appointments_metadata.tables.values():
    table.to_metadata(metadata)

# Test database URL - MUST be different from the application database.
# Defaults to a throwaway SQLite file so the suite runs without PostgreSQL.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./frontdesk_test.db")

# Safety check: prevent running tests against production database
if settings.database_url == TEST_DATABASE_URL:
    print("\n❌ CRITICAL ERROR: Test database URL is same as production database!")
    print("This would DROP all production data during tests.")
    print("Please set TEST_DATABASE_URL to a separate test database in .env")
    sys.exit(1)

if TEST_DATABASE_URL.startswith("postgresql://"):
    TEST_DATABASE_URL = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

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

# Open 08:00-17:00 every day so tests do not depend on the weekday
ALL_WEEK_HOURS = (
    "["
    + ",".join(f'{{"day": "{day}", "open": "08:00", "close": "17:00"}}' for day in WEEKDAYS)
    + "]"
)


class FrozenClock:
    """Clinic clock that tests can move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    # Drop tables after test
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def session_factory():
    """Session factory for tests that need one session per concurrent caller."""
    return TestSessionLocal


@pytest.fixture
def redis_client():
    """In-memory Redis used for queue counters."""
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def test_settings():
    """Settings with a predictable all-week schedule."""
    return settings.model_copy(
        update={
            "business_hours_json": ALL_WEEK_HOURS,
            "clinic_id": "test-clinic",
            "clinic_timezone": "UTC",
        }
    )


@pytest.fixture
def clock() -> FrozenClock:
    """Clinic clock frozen at 07:00 on Saturday 1 June 2024."""
    return FrozenClock(datetime(2024, 6, 1, 7, 0))


@pytest.fixture
def make_service(redis_client, test_settings, clock):
    """Build an appointment service on a given session."""

    def factory(session: AsyncSession, notifier=None, now=None) -> AppointmentService:
        sequencer = QueueSequencer(
            redis_client,
            clinic_id=test_settings.clinic_id,
            ttl_seconds=test_settings.queue_counter_ttl_seconds,
        )
        store = AppointmentStore(session, sequencer, clinic_id=test_settings.clinic_id)
        return AppointmentService(
            store,
            DirectoryService(session),
            notifier=notifier,
            config=test_settings,
            clock=now or clock,
        )

    return factory


@pytest.fixture
def service(db_session, make_service) -> AppointmentService:
    """Appointment service bound to the test session and frozen clock."""
    return make_service(db_session)


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession):
    """Create a test patient."""
    patient_id = uuid4()
    await db_session.execute(insert(patients).values(id=patient_id, full_name="Jane Roe"))
    await db_session.commit()
    return patient_id


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession):
    """Create a second patient."""
    patient_id = uuid4()
    await db_session.execute(insert(patients).values(id=patient_id, full_name="John Poe"))
    await db_session.commit()
    return patient_id


@pytest_asyncio.fixture
async def test_doctor(db_session: AsyncSession):
    """Create a doctor working whenever the clinic is open."""
    doctor_id = uuid4()
    await db_session.execute(insert(doctors).values(id=doctor_id, full_name="Dr. Ada Lee"))
    await db_session.commit()
    return doctor_id


@pytest_asyncio.fixture
async def second_doctor(db_session: AsyncSession):
    """Create another doctor working whenever the clinic is open."""
    doctor_id = uuid4()
    await db_session.execute(insert(doctors).values(id=doctor_id, full_name="Dr. Omar Haddad"))
    await db_session.commit()
    return doctor_id


@pytest_asyncio.fixture
async def part_time_doctor(db_session: AsyncSession):
    """Create a doctor working Monday and Wednesday mornings only."""
    doctor_id = uuid4()
    await db_session.execute(
        insert(doctors).values(
            id=doctor_id,
            full_name="Dr. Sam Park",
            available_days=["monday", "wednesday"],
            available_start_time=time(9, 0),
            available_end_time=time(12, 0),
        )
    )
    await db_session.commit()
    return doctor_id


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    redis_client,
    test_settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    def override_get_redis_client():
        return redis_client

    def override_get_appointment_service() -> AppointmentService:
        sequencer = QueueSequencer(
            redis_client,
            clinic_id=test_settings.clinic_id,
            ttl_seconds=test_settings.queue_counter_ttl_seconds,
        )
        store = AppointmentStore(db_session, sequencer, clinic_id=test_settings.clinic_id)
        return AppointmentService(store, DirectoryService(db_session), config=test_settings)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = override_get_redis_client
    app.dependency_overrides[get_appointment_service] = override_get_appointment_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def staff_headers() -> dict:
    """Authentication headers for a front-desk staff member."""
    token = create_access_token(
        data={"sub": str(uuid4()), "role": "staff"},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(test_patient) -> dict:
    """Authentication headers for the test patient's portal account."""
    token = create_access_token(
        data={"sub": str(uuid4()), "role": "patient", "patient_id": str(test_patient)},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}
