"""
Bus database model.

A bus belongs to an Agent. Its seat layout is derived from capacity and
type when the bus is created (see domain/seat_layout.py).
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base
from bus_booking.app.models.enums import BusType, BusStatus


class Bus(Base):
    __tablename__ = "buses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Bus belongs to Agent
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)

    # Identification
    bus_number = Column(String(20), unique=True, nullable=False, index=True)
    registration_number = Column(String(20), unique=True, nullable=True)
    type = Column(Enum(BusType), nullable=False, index=True)

    capacity = Column(Integer, nullable=False)
    manufacturer = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year_of_manufacture = Column(Integer, nullable=False)

    amenities = Column(JSON, default=list, nullable=False)
    seat_layout = Column(JSON, default=list, nullable=False)
    route_ids = Column(JSON, default=list, nullable=False)
    insurance_details = Column(JSON, nullable=True)

    status = Column(Enum(BusStatus), default=BusStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Bus(id={self.id}, number='{self.bus_number}', agent_id={self.agent_id})>"
