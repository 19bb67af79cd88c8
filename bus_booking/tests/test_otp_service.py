"""
Unit tests for OTP issue and verification.
"""

import json
from datetime import timedelta

import pytest

from bus_booking.app.core.config import settings
from bus_booking.app.core.exceptions import (
    InvalidOTPError,
    InvalidPhoneError,
    OTPAttemptsExceededError,
    OTPExpiredError,
    OTPNotFoundError,
)
from bus_booking.app.core.time_utils import utcnow
from bus_booking.app.services.kv_store import InMemoryKeyValueStore
from bus_booking.app.services.otp_service import OTPService, generate_numeric_code, hash_code


class FakeClock:
    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def service(store, clock):
    return OTPService(store, code_generator=lambda n: "123456", clock=clock, expiry_minutes=2, max_attempts=3)


def test_generate_numeric_code_length():
    code = generate_numeric_code(6)
    assert len(code) == 6
    assert code.isdigit()


@pytest.mark.asyncio
async def test_issue_stores_hash_not_code(service, store, clock):
    issued = await service.issue("+91 98765-43210")

    assert issued.phone == "+919876543210"
    assert issued.code == "123456"
    assert issued.expires_at == clock.now + timedelta(minutes=2)

    entry = json.loads(await store.get("+919876543210"))
    assert entry["otpHash"] == hash_code("123456")
    assert "123456" not in json.dumps(entry)
    assert entry["attempts"] == 0
    assert entry["maxAttempts"] == 3


@pytest.mark.asyncio
async def test_issue_rejects_bad_phone(service):
    with pytest.raises(InvalidPhoneError) as exc:
        await service.issue("12345")
    assert exc.value.error_code == "INVALID_PHONE"
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_verify_succeeds_exactly_once(service):
    await service.issue("+919876543210")
    await service.verify("+919876543210", "123456")

    with pytest.raises(OTPNotFoundError):
        await service.verify("+919876543210", "123456")


@pytest.mark.asyncio
async def test_wrong_code_counts_down_then_purges(service, store):
    await service.issue("+919876543210")

    with pytest.raises(InvalidOTPError) as first:
        await service.verify("+919876543210", "000000")
    assert first.value.details == {"remainingAttempts": 2}

    with pytest.raises(InvalidOTPError) as second:
        await service.verify("+919876543210", "000000")
    assert second.value.details == {"remainingAttempts": 1}

    with pytest.raises(InvalidOTPError) as third:
        await service.verify("+919876543210", "000000")
    assert third.value.details == {"remainingAttempts": 0}

    assert await store.get("+919876543210") is None
    with pytest.raises(OTPNotFoundError):
        await service.verify("+919876543210", "123456")


@pytest.mark.asyncio
async def test_verify_after_expiry_fails_regardless_of_code(service, clock, store):
    await service.issue("+919876543210")
    clock.advance(minutes=2, seconds=1)

    with pytest.raises(OTPExpiredError) as exc:
        await service.verify("+919876543210", "123456")
    assert exc.value.error_code == "OTP_EXPIRED"
    assert await store.get("+919876543210") is None


@pytest.mark.asyncio
async def test_attempts_exhausted_entry_reports_429(service, store):
    await service.issue("+919876543210")
    entry = json.loads(await store.get("+919876543210"))
    entry["attempts"] = entry["maxAttempts"]
    await store.put("+919876543210", json.dumps(entry), 60)

    with pytest.raises(OTPAttemptsExceededError) as exc:
        await service.verify("+919876543210", "123456")
    assert exc.value.status_code == 429
    assert await store.get("+919876543210") is None


@pytest.mark.asyncio
async def test_resend_overwrites_pending_entry(store, clock):
    codes = iter(["111111", "222222"])
    service = OTPService(store, code_generator=lambda n: next(codes), clock=clock)

    await service.issue("+919876543210")
    await service.resend("+919876543210")

    with pytest.raises(InvalidOTPError):
        await service.verify("+919876543210", "111111")
    await service.verify("+919876543210", "222222")


@pytest.mark.asyncio
async def test_code_hidden_in_production(service, mocker):
    mocker.patch.object(settings, "environment", "production")
    issued = await service.issue("+919876543210")
    assert issued.code is None
