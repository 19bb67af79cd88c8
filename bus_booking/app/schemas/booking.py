"""
Booking Pydantic schemas.

Request fields are loosely typed; domain/validation.py enforces the
booking rules in a fixed order.
"""

from datetime import datetime
from typing import Any, List, Optional, Union
from pydantic import Field
from bus_booking.app.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from bus_booking.app.schemas.common import CamelModel, PageMeta, UTCDateTime


class PassengerIn(CamelModel):
    name: Optional[str] = None
    age: Optional[Any] = None
    gender: Optional[str] = None


class Passenger(CamelModel):
    name: str
    age: Union[int, float]
    gender: str
    seat_number: str


class BookingCreate(CamelModel):
    bus_id: Optional[int] = None
    route_id: Optional[int] = None
    seats: Optional[List[str]] = None
    passengers: Optional[List[PassengerIn]] = None
    journey_date: Optional[datetime] = None
    price_per_seat: Optional[float] = Field(None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CARD


class BookingUpdate(CamelModel):
    journey_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None


class BookingResponse(CamelModel):
    id: int
    user_id: int
    bus_id: int
    route_id: int
    seats: List[str]
    passengers: List[Passenger]
    status: BookingStatus
    total_amount: float
    booking_date: UTCDateTime
    journey_date: UTCDateTime
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    booking_reference: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


class BookingListResponse(CamelModel):
    bookings: List[BookingResponse]
    pagination: PageMeta
