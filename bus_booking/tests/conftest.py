"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from bus_booking.app.main import app
from bus_booking.app.db.session import get_db, Base
from bus_booking.app.services.kv_store import InMemoryKeyValueStore
from bus_booking.app.services.otp_service import OTPService, get_otp_service
from bus_booking.tests.helpers import TEST_OTP, TestingSessionLocal, engine


# Mock Redis for the Redis-backed OTP store
class MockRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            self.ttls.pop(key, None)
            return 1
        return 0

    async def flushdb(self):
        self.store = {}
        self.ttls = {}

    async def close(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def otp_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def otp_service(otp_store):
    """OTP service that always issues TEST_OTP."""
    return OTPService(otp_store, code_generator=lambda length: TEST_OTP)


@pytest.fixture(autouse=True)
async def setup_database(otp_service):
    """Create tables and apply overrides before each test; drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_service] = lambda: otp_service

    yield

    app.dependency_overrides = {}
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session
