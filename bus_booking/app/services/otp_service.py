"""
One-time password issue and verification.

Codes are never stored in plaintext: the store holds a SHA-256 digest, the
expiry, and the attempt counter, keyed by normalised phone number. Issuing a
new code for a phone overwrites any pending one.
"""

import hashlib
import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from bus_booking.app.core.config import settings
from bus_booking.app.core.exceptions import (
    InvalidOTPError,
    InvalidPhoneError,
    OTPAttemptsExceededError,
    OTPExpiredError,
    OTPNotFoundError,
)
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.time_utils import utcnow
from bus_booking.app.domain.validation import normalize_phone, validate_phone
from bus_booking.app.services.kv_store import KeyValueStore, build_store

logger = get_logger(__name__)


def generate_numeric_code(length: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


@dataclass
class IssuedOTP:
    phone: str
    expires_at: datetime
    code: Optional[str] = None  # only outside production


class OTPService:
    """
    Args:
        store: key-value store holding pending entries
        code_generator: callable(length) -> code
        clock: callable returning the current aware UTC datetime
    """

    def __init__(
        self,
        store: KeyValueStore,
        code_generator: Callable[[int], str] = generate_numeric_code,
        clock: Callable[[], datetime] = utcnow,
        expiry_minutes: Optional[int] = None,
        max_attempts: Optional[int] = None,
        code_length: Optional[int] = None,
        retention_seconds: Optional[int] = None,
    ):
        self.store = store
        self.code_generator = code_generator
        self.clock = clock
        self.expiry_minutes = expiry_minutes or settings.otp_expiry_minutes
        self.max_attempts = max_attempts or settings.max_otp_attempts
        self.code_length = code_length or settings.otp_length
        self.retention_seconds = settings.otp_retention_seconds if retention_seconds is None else retention_seconds

    async def issue(self, phone: str) -> IssuedOTP:
        if not validate_phone(phone):
            raise InvalidPhoneError(phone)
        phone = normalize_phone(phone)

        code = self.code_generator(self.code_length)
        expires_at = self.clock() + timedelta(minutes=self.expiry_minutes)
        entry = {
            "otpHash": hash_code(code),
            "expiresAt": expires_at.isoformat(),
            "attempts": 0,
            "maxAttempts": self.max_attempts,
        }
        # Kept past expiry so a late verify reports OTP_EXPIRED, not OTP_NOT_FOUND
        await self._save(phone, entry)

        if settings.is_production:
            logger.info(f"OTP issued for {phone}")
            return IssuedOTP(phone=phone, expires_at=expires_at)

        logger.info(f"OTP {code} generated for phone number: {phone}")
        return IssuedOTP(phone=phone, expires_at=expires_at, code=code)

    async def resend(self, phone: str) -> IssuedOTP:
        return await self.issue(phone)

    async def verify(self, phone: str, code: str) -> None:
        """
        Consume the pending code for ``phone``.

        Raises:
            InvalidPhoneError, OTPNotFoundError, OTPExpiredError,
            OTPAttemptsExceededError, InvalidOTPError
        """
        if not validate_phone(phone):
            raise InvalidPhoneError(phone)
        phone = normalize_phone(phone)

        raw = await self.store.get(phone)
        if raw is None:
            raise OTPNotFoundError()
        entry = json.loads(raw)

        if self.clock() > datetime.fromisoformat(entry["expiresAt"]):
            await self.store.delete(phone)
            raise OTPExpiredError()

        if entry["attempts"] >= entry["maxAttempts"]:
            await self.store.delete(phone)
            raise OTPAttemptsExceededError()

        if secrets.compare_digest(hash_code(code or ""), entry["otpHash"]):
            await self.store.delete(phone)
            logger.info(f"OTP verified for {phone}")
            return

        entry["attempts"] += 1
        remaining = entry["maxAttempts"] - entry["attempts"]
        if remaining <= 0:
            await self.store.delete(phone)
        else:
            await self._save(phone, entry)
        logger.warning(f"Invalid OTP for {phone}, {remaining} attempts remaining")
        raise InvalidOTPError(remaining)

    async def _save(self, phone: str, entry: dict) -> None:
        expires_at = datetime.fromisoformat(entry["expiresAt"])
        ttl = int((expires_at - self.clock()).total_seconds()) + self.retention_seconds
        await self.store.put(phone, json.dumps(entry), max(ttl, 1))


_otp_service: Optional[OTPService] = None


def get_otp_service() -> OTPService:
    """FastAPI dependency; one service (and store) per process."""
    global _otp_service
    if _otp_service is None:
        _otp_service = OTPService(build_store())
    return _otp_service
