"""
Route database model.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON, Index
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base


AVERAGE_SPEED_KMPH = 60


class Route(Base):
    """
    Source to destination route with optional intermediate stops.

    stops: list of {name, arrivalTime, departureTime, distanceFromStart}
    """
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    source = Column(String(100), nullable=False, index=True)
    destination = Column(String(100), nullable=False, index=True)
    distance = Column(Float, nullable=False)  # km
    duration = Column(Integer, nullable=True)  # minutes
    stops = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_routes_source_destination", "source", "destination"),
    )

    @property
    def estimated_travel_time(self) -> int:
        """Duration in minutes, estimated from distance when not recorded."""
        if self.duration:
            return self.duration
        return round(self.distance / AVERAGE_SPEED_KMPH * 60)
