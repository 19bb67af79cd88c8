"""
Shared test database and API helpers.

Kept out of conftest.py so test modules can import them by a stable name.
"""

from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from bus_booking.app.models.enums import UserRole
from bus_booking.app.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_OTP = "123456"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def login(client, phone="+919876543210", headers=None):
    """Send + verify OTP; returns the login payload (user, tokens, sessionId)."""
    await client.post("/api/auth/send-otp", json={"phone": phone})
    response = await client.post(
        "/api/auth/verify-otp", json={"phone": phone, "otp": TEST_OTP}, headers=headers or {}
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def auth_headers(login_data):
    return {"Authorization": f"Bearer {login_data['tokens']['accessToken']}"}


async def set_role(phone, role: UserRole):
    async with TestingSessionLocal() as session:
        await session.execute(update(User).where(User.phone == phone).values(role=role))
        await session.commit()


async def login_as(client, phone, role: UserRole):
    """Log in once to create the user, set the role, then log in again for a token carrying it."""
    await login(client, phone)
    await set_role(phone, role)
    return await login(client, phone)


AGENT_PROFILE = {
    "companyName": "Sharma Travels",
    "gst": "27aapfu0939f1zv",
    "bankDetails": {
        "accountNumber": "123456789012",
        "accountHolderName": "Ravi Sharma",
        "ifsc": "hdfc0001234",
        "bankName": "HDFC Bank",
        "branchName": "Pune Main",
    },
    "supportContact": "+919800000001",
    "address": {
        "street": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    },
}


async def create_agent(client, phone="+919811111111"):
    """Log in and complete an agent profile; returns headers carrying the AGENT role."""
    data = await login(client, phone)
    response = await client.post("/api/agents/complete-profile", json=AGENT_PROFILE, headers=auth_headers(data))
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['data']['accessToken']}"}


BUS_PAYLOAD = {
    "busNumber": "mh12ab1234",
    "type": "AC",
    "capacity": 10,
    "manufacturer": "Volvo",
    "model": "9400",
    "yearOfManufacture": 2022,
    "amenities": ["WiFi", "Water"],
}

ROUTE_PAYLOAD = {
    "source": "Pune",
    "destination": "Mumbai",
    "distance": 150,
}


async def create_bus(client, headers, **overrides):
    response = await client.post("/api/buses", json={**BUS_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_route(client, headers, **overrides):
    response = await client.post("/api/routes", json={**ROUTE_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]
