"""
Notification Database Model.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    SEAT_AVAILABILITY = "SEAT_AVAILABILITY"
    JOURNEY_REMINDER = "JOURNEY_REMINDER"
    BOARDING_INFO = "BOARDING_INFO"
    ARRIVAL_INFO = "ARRIVAL_INFO"
    SYSTEM_MESSAGE = "SYSTEM_MESSAGE"
    PROMOTIONAL = "PROMOTIONAL"
    LOGIN_ATTEMPT = "LOGIN_ATTEMPT"
    SECURITY_ALERT = "SECURITY_ALERT"


class NotificationPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class NotificationChannel(str, enum.Enum):
    SMS = "SMS"
    EMAIL = "EMAIL"
    PUSH = "PUSH"
    IN_APP = "IN_APP"


class Notification(Base):
    """
    Notification addressed to a user.
    Delivery over SMS/EMAIL/PUSH is stubbed; rows double as the in-app inbox.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient = Column(JSON, nullable=True)  # {phone, email}

    # Content
    type = Column(Enum(NotificationType), nullable=False, index=True)
    priority = Column(Enum(NotificationPriority), default=NotificationPriority.MEDIUM, nullable=False)
    channel = Column(Enum(NotificationChannel), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, default=dict, nullable=False)

    # State
    read = Column(Boolean, default=False, nullable=False, index=True)
    sent = Column(Boolean, default=False, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user={self.user_id}, title='{self.title}')>"
