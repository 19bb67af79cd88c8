"""
Notification Pydantic schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field
from bus_booking.app.models.notification import NotificationChannel, NotificationPriority, NotificationType
from bus_booking.app.schemas.common import CamelModel, PageMeta, UTCDateTime


class NotificationCreate(CamelModel):
    """Admin send. Type and channel are checked against their enums in the endpoint."""
    user_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = None
    type: Optional[str] = None
    channel: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    payload: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None


class Recipient(CamelModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    priority: NotificationPriority
    channel: NotificationChannel
    recipient: Optional[Recipient] = None
    payload: Dict[str, Any]
    read: bool
    sent: bool
    scheduled_at: UTCDateTime
    sent_at: Optional[UTCDateTime] = None
    expires_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime


class NotificationListResponse(CamelModel):
    notifications: List[NotificationResponse]
    pagination: PageMeta


class RemindersScheduled(CamelModel):
    scheduled: int
