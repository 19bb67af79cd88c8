"""
Audit log Pydantic schemas.
"""

from typing import Any, Dict, Optional
from bus_booking.app.schemas.common import CamelModel, UTCDateTime


class AuditLogResponse(CamelModel):
    id: int
    actor_id: Optional[int] = None
    actor_phone: Optional[str] = None
    action: str
    target_user_id: Optional[int] = None
    meta_data: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    timestamp: UTCDateTime
