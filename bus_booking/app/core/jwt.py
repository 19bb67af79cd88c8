"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding the access and
refresh tokens. The two token kinds are signed with independent secrets.
"""

import uuid
from datetime import timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from bus_booking.app.core.config import settings
from bus_booking.app.core.time_utils import utcnow


def _encode(data: Dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    # jti keeps two tokens issued in the same second distinct
    to_encode.update({"exp": utcnow() + expires_delta, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, user_id, phone, role, sid)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "+919876543210",
            "user_id": 12,
            "phone": "+919876543210",
            "role": "USER",
            "sid": 40,
            "jti": "...",
            "exp": 1234567890
        }
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, settings.jwt_secret, expires_delta)


def create_refresh_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT refresh token (sub, user_id, phone, sid)."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    return _encode(data, settings.refresh_token_secret, expires_delta)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def decode_refresh_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.refresh_token_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def issue_token_pair(user, session_id: int) -> Tuple[str, str]:
    """
    Sign an access/refresh pair for ``user`` bound to session ``session_id``.

    Returns:
        (access_token, refresh_token)
    """
    claims = {
        "sub": user.phone,
        "user_id": user.id,
        "phone": user.phone,
        "sid": session_id,
    }
    access_token = create_access_token({**claims, "role": user.role.value})
    refresh_token = create_refresh_token(claims)
    return access_token, refresh_token
