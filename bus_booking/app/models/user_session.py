"""
Login session model.

One row per login/device. The row holds the current refresh token; token
rotation overwrites it in place. Rows are deactivated, never deleted.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    refresh_token = Column(String(1024), unique=True, nullable=False, index=True)

    # deviceId, deviceType, deviceModel, os, browser, userAgent
    device_info = Column(JSON, nullable=True)
    ip = Column(String(64), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_active_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_sessions_user_active", "user_id", "is_active"),
    )

    def __repr__(self):
        return f"<UserSession(id={self.id}, user_id={self.user_id}, active={self.is_active})>"
