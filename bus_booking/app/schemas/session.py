"""
Session Pydantic schemas.
"""

from typing import Optional
from bus_booking.app.schemas.common import CamelModel, UTCDateTime


class DeviceInfo(CamelModel):
    device_id: Optional[str] = None
    device_type: Optional[str] = None
    device_model: Optional[str] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    user_agent: Optional[str] = None


class SessionResponse(CamelModel):
    """Refresh tokens are never echoed back."""
    id: int
    user_id: int
    device_info: Optional[DeviceInfo] = None
    ip: str
    is_active: bool
    is_current: bool = False
    last_active_at: UTCDateTime
    expires_at: UTCDateTime
    created_at: UTCDateTime
