"""
Integration tests for the OTP login flow.

send-otp -> verify-otp -> /users/me, plus the OTP failure codes.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from bus_booking.app.models.audit_log import AuditLog
from bus_booking.app.models.user_session import UserSession
from bus_booking.tests.helpers import TEST_OTP, TestingSessionLocal, auth_headers, login

PHONE = "+919876543210"


@pytest.mark.asyncio
async def test_send_otp_returns_code_and_expiry(client):
    before = datetime.now(timezone.utc)
    response = await client.post("/api/auth/send-otp", json={"phone": PHONE})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "OTP sent successfully"
    assert body["data"]["phoneNumber"] == PHONE
    assert body["data"]["otpSent"] == TEST_OTP

    expiry = datetime.fromisoformat(body["data"]["otpExpiry"].replace("Z", "+00:00"))
    assert timedelta(minutes=1, seconds=50) < expiry - before <= timedelta(minutes=2, seconds=5)


@pytest.mark.asyncio
async def test_send_otp_requires_phone(client):
    response = await client.post("/api/auth/send-otp", json={})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_send_otp_invalid_phone(client):
    response = await client.post("/api/auth/send-otp", json={"phone": "0123"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PHONE"


@pytest.mark.asyncio
async def test_verify_creates_user_then_second_verify_not_found(client):
    await client.post("/api/auth/send-otp", json={"phone": PHONE})
    response = await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": TEST_OTP})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User created and logged in successfully"
    data = body["data"]
    assert data["isNewUser"] is True
    assert data["user"]["phone"] == PHONE
    assert data["user"]["role"] == "USER"
    assert data["user"]["name"].startswith("User-")
    assert data["tokens"]["accessToken"]
    assert data["tokens"]["refreshToken"]
    assert data["tokens"]["tokenType"] == "bearer"

    again = await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": TEST_OTP})
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "OTP_NOT_FOUND"


@pytest.mark.asyncio
async def test_second_login_reuses_user_and_opens_new_session(client):
    first = await login(client, PHONE)
    second = await login(client, PHONE)

    assert second["isNewUser"] is False
    assert second["user"]["id"] == first["user"]["id"]
    assert second["sessionId"] != first["sessionId"]

    async with TestingSessionLocal() as session:
        result = await session.execute(select(UserSession).where(UserSession.user_id == first["user"]["id"]))
        assert len(result.scalars().all()) == 2


@pytest.mark.asyncio
async def test_session_records_device_headers(client):
    data = await login(client, PHONE, headers={"device-id": "dev-1", "os": "Android", "x-forwarded-for": "10.0.0.7"})

    async with TestingSessionLocal() as session:
        stored = await session.get(UserSession, data["sessionId"])
    assert stored.device_info["deviceId"] == "dev-1"
    assert stored.device_info["os"] == "Android"
    assert stored.ip == "10.0.0.7"


@pytest.mark.asyncio
async def test_wrong_otp_reports_remaining_attempts(client):
    await client.post("/api/auth/send-otp", json={"phone": PHONE})

    response = await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": "000000"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_OTP"
    assert error["details"]["remainingAttempts"] == 2


@pytest.mark.asyncio
async def test_failed_verify_is_audited(client):
    await client.post("/api/auth/send-otp", json={"phone": PHONE})
    await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": "000000"})

    async with TestingSessionLocal() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == "LOGIN_FAILED"))
        entry = result.scalar_one()
    assert entry.actor_phone == PHONE
    assert entry.meta_data["reason"] == "INVALID_OTP"


@pytest.mark.asyncio
async def test_verify_requires_phone_and_otp(client):
    response = await client.post("/api/auth/verify-otp", json={"phone": PHONE})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_resend_replaces_code(client, otp_service):
    await client.post("/api/auth/send-otp", json={"phone": PHONE})
    otp_service.code_generator = lambda n: "654321"
    response = await client.post("/api/auth/resend-otp", json={"phone": PHONE})
    assert response.status_code == 200
    assert response.json()["message"] == "OTP resent successfully"

    stale = await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": TEST_OTP})
    assert stale.json()["error"]["code"] == "INVALID_OTP"
    fresh = await client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": "654321"})
    assert fresh.status_code == 200


@pytest.mark.asyncio
async def test_me_with_token(client):
    data = await login(client, PHONE)
    response = await client.get("/api/users/me", headers=auth_headers(data))
    assert response.status_code == 200
    assert response.json()["data"]["phone"] == PHONE


@pytest.mark.asyncio
async def test_me_without_token(client):
    response = await client.get("/api/users/me")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_MISSING"


@pytest.mark.asyncio
async def test_me_with_garbage_token(client):
    response = await client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_INVALID"
