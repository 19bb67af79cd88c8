"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from bus_booking.app.core.exceptions import AuthenticationError
from bus_booking.app.core.jwt import decode_access_token

# HTTP Bearer security scheme; missing headers are reported as TOKEN_MISSING below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Verification is stateless: signature and expiry only. A revoked session
    keeps its outstanding access token valid until that token expires.

    Returns:
        Decoded token payload (sub, user_id, phone, role, sid)

    Raises:
        AuthenticationError: TOKEN_MISSING or TOKEN_INVALID (401)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", error_code="TOKEN_MISSING")

    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("user_id"):
        raise AuthenticationError("Invalid or expired token", error_code="TOKEN_INVALID")

    request.state.user_id = payload["user_id"]
    return payload


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_device_info(request: Request) -> dict:
    """Device metadata sent by the client as request headers."""
    headers = request.headers
    return {
        "deviceId": headers.get("device-id"),
        "deviceType": headers.get("device-type"),
        "deviceModel": headers.get("device-model"),
        "os": headers.get("os"),
        "browser": headers.get("browser"),
        "userAgent": headers.get("user-agent"),
    }
