import json
import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, timedelta
from pathlib import Path

import fakeredis
import fakeredis.aioredis
import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file, then pin everything the tests
# depend on so a developer's .env can never point them at a real database
load_dotenv()

TEST_DIR = Path(tempfile.mkdtemp(prefix="healthmate-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DIR / 'healthmate_test.db'}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["STORAGE_DIR"] = str(TEST_DIR / "uploads")
os.environ["COMPLETION_API_KEY"] = "test-completion-key"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from healthmate.api.v1.endpoints.realtime import get_pubsub_factory
from healthmate.config import settings
from healthmate.core.completion import CompletionClient, get_completion_client
from healthmate.core.meetings import JitsiMeetingProvider, get_meeting_provider
from healthmate.core.redis_client import CacheManager, get_redis_client
from healthmate.core.storage import FileStorage, get_file_storage
from healthmate.database import get_db
from healthmate.main import app
from healthmate.models import metadata
from healthmate.schemas.profiles import ProfileDetails, Role
from healthmate.schemas.slots import SlotCreate, SlotResponse
from healthmate.services.auth_service import AuthService
from healthmate.services.profile_service import ProfileService
from healthmate.services.slot_service import SlotService

TEST_PASSWORD = "secret123"
MEETING_BASE_URL = "https://meet.test"

# Use NullPool so every session gets a fresh connection on the current loop
test_engine = create_async_engine(
    settings.database_url,
    echo=False,
    poolclass=NullPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class CompletionStub:
    """Stands in for the chat-completion API; records every request body."""

    def __init__(self) -> None:
        self.reply = "Stub assistant reply"
        self.status_code = 200
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "unavailable"})
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": self.reply}}]}
        )

    @property
    def last_user_message(self) -> str:
        return self.requests[-1]["messages"][-1]["content"]


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """One in-memory Redis server per test."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(redis_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def cache_manager(fake_redis: fakeredis.FakeRedis) -> CacheManager:
    return CacheManager(fake_redis)


@pytest.fixture
def completion_stub() -> CompletionStub:
    return CompletionStub()


@pytest.fixture
def completion_client(completion_stub: CompletionStub) -> CompletionClient:
    return CompletionClient(
        api_url="https://completions.test/v1/chat/completions",
        api_key="test-completion-key",
        model="test-model",
        transport=httpx.MockTransport(completion_stub),
    )


@pytest.fixture
def file_storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path, public_url="/files")


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    fake_redis: fakeredis.FakeRedis,
    redis_server: fakeredis.FakeServer,
    completion_client: CompletionClient,
    file_storage: FileStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with every external service replaced."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: fake_redis
    app.dependency_overrides[get_completion_client] = lambda: completion_client
    app.dependency_overrides[get_file_storage] = lambda: file_storage
    app.dependency_overrides[get_meeting_provider] = lambda: JitsiMeetingProvider(
        MEETING_BASE_URL
    )
    app.dependency_overrides[get_pubsub_factory] = lambda: lambda: fakeredis.aioredis.FakeRedis(
        server=redis_server, decode_responses=True
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def create_profile(
    db_session: AsyncSession, cache_manager: CacheManager
) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a profile that can log in with ``TEST_PASSWORD``."""

    async def _create(
        email: str,
        full_name: str,
        role: Role = Role.PATIENT,
        **details: object,
    ) -> dict:
        return await ProfileService(cache_manager).create_profile(
            db_session,
            email=email,
            full_name=full_name,
            role=role,
            password=TEST_PASSWORD,
            details=ProfileDetails(**details),
        )

    return _create


@pytest_asyncio.fixture
async def patient(create_profile) -> dict:
    return await create_profile(
        "nandini@example.com", "Nandini Rao", Role.PATIENT, phone="555-0101"
    )


@pytest_asyncio.fixture
async def other_patient(create_profile) -> dict:
    return await create_profile("sam@example.com", "Sam Patel", Role.PATIENT)


@pytest_asyncio.fixture
async def doctor(create_profile) -> dict:
    return await create_profile(
        "sarah.johnson@example.com",
        "Sarah Johnson",
        Role.DOCTOR,
        specialization="Cardiology",
        medical_license="MD-1001",
    )


@pytest_asyncio.fixture
async def other_doctor(create_profile) -> dict:
    return await create_profile(
        "michael.chen@example.com", "Michael Chen", Role.DOCTOR, specialization="Dermatology"
    )


@pytest_asyncio.fixture
async def admin(create_profile) -> dict:
    return await create_profile("admin@example.com", "Admin User", Role.ADMIN)


@pytest.fixture
def make_headers(cache_manager: CacheManager) -> Callable[[dict], dict]:
    """Bearer headers for a profile."""

    def _headers(profile: dict) -> dict:
        tokens = AuthService(cache_manager).create_tokens(str(profile["id"]), profile["role"])
        return {"Authorization": f"Bearer {tokens.access_token}"}

    return _headers


@pytest.fixture
def patient_headers(patient: dict, make_headers) -> dict:
    return make_headers(patient)


@pytest.fixture
def other_patient_headers(other_patient: dict, make_headers) -> dict:
    return make_headers(other_patient)


@pytest.fixture
def doctor_headers(doctor: dict, make_headers) -> dict:
    return make_headers(doctor)


@pytest.fixture
def other_doctor_headers(other_doctor: dict, make_headers) -> dict:
    return make_headers(other_doctor)


@pytest.fixture
def admin_headers(admin: dict, make_headers) -> dict:
    return make_headers(admin)


@pytest.fixture
def add_slot(db_session: AsyncSession) -> Callable[..., Awaitable[SlotResponse]]:
    """Factory publishing a slot for a doctor, tomorrow at 10:00 by default."""

    async def _add(
        doctor: dict,
        on: date | None = None,
        start_time: str = "10:00",
        duration: int = 30,
    ) -> SlotResponse:
        data = SlotCreate(
            date=on or date.today() + timedelta(days=1),
            start_time=start_time,
            duration=duration,
        )
        return await SlotService(db_session).add_slot(doctor["id"], data)

    return _add


@pytest_asyncio.fixture
async def open_slot(doctor: dict, add_slot) -> SlotResponse:
    return await add_slot(doctor)


@pytest.fixture
def book(client: AsyncClient) -> Callable[..., Awaitable[httpx.Response]]:
    """Book a slot through the API."""

    async def _book(
        headers: dict,
        slot_id: object,
        reason: str = "Chest pain when climbing stairs",
        appointment_type: str = "video",
        idempotency_key: str | None = None,
    ) -> httpx.Response:
        if idempotency_key:
            headers = {**headers, "Idempotency-Key": idempotency_key}
        return await client.post(
            "/api/v1/appointments/book",
            json={
                "slot_id": str(slot_id),
                "reason": reason,
                "appointment_type": appointment_type,
            },
            headers=headers,
        )

    return _book
