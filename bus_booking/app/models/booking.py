"""
Booking database model.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base
from bus_booking.app.models.enums import BookingStatus, PaymentMethod, PaymentStatus


class Booking(Base):
    """
    Seat booking.

    passengers: list of {name, age, gender, seatNumber}; the passenger at
    index i sits in seats[i].
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    bus_id = Column(Integer, ForeignKey("buses.id"), nullable=False, index=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)

    seats = Column(JSON, nullable=False)
    passengers = Column(JSON, nullable=False)

    status = Column(Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False, index=True)
    total_amount = Column(Float, nullable=False)

    booking_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    journey_date = Column(DateTime(timezone=True), nullable=False, index=True)

    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CARD, nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    booking_reference = Column(String(32), unique=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Booking(id={self.id}, ref='{self.booking_reference}', status='{self.status.value}')>"
