"""
Audit Log Database Model.

Tracks security-relevant events and admin actions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged include:
    - LOGIN_SUCCESS / LOGIN_FAILED
    - TOKEN_REFRESHED / SESSION_REVOKED
    - ROLE_CHANGED / STATUS_CHANGED / AGENT_VERIFIED
    - BUS_*, ROUTE_*, BOOKING_* lifecycle events
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous/system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_phone = Column(String(20), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Who was the target of the action (for user management actions)
    target_user_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_phone})>"
