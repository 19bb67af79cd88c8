"""
Bus Pydantic schemas.

Defines request and response models for bus management.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from bus_booking.app.models.enums import BusStatus, BusType
from bus_booking.app.schemas.common import CamelModel, PageMeta, UTCDateTime


class Seat(CamelModel):
    number: str
    type: str
    position: str
    price: float
    status: str


class InsuranceDetails(CamelModel):
    company: Optional[str] = None
    policy_number: Optional[str] = None
    expiry_date: Optional[str] = None


class BusCreate(CamelModel):
    """Schema for registering a bus. ``agentId`` is honoured for admins only."""
    agent_id: Optional[int] = None
    bus_number: Optional[str] = Field(None, max_length=20)
    type: Optional[str] = None
    capacity: Optional[int] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    year_of_manufacture: Optional[int] = None
    amenities: List[str] = Field(default_factory=list)
    route_ids: List[int] = Field(default_factory=list)
    registration_number: Optional[str] = Field(None, max_length=20)
    insurance_details: Optional[InsuranceDetails] = None

    @field_validator("bus_number", "type", "registration_number")
    @classmethod
    def upper_codes(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class BusUpdate(CamelModel):
    """Schema for updating an existing bus."""
    type: Optional[str] = None
    capacity: Optional[int] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    year_of_manufacture: Optional[int] = None
    amenities: Optional[List[str]] = None
    route_ids: Optional[List[int]] = None
    status: Optional[BusStatus] = None
    registration_number: Optional[str] = Field(None, max_length=20)
    insurance_details: Optional[InsuranceDetails] = None

    @field_validator("type", "registration_number")
    @classmethod
    def upper_codes(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class BusResponse(CamelModel):
    id: int
    agent_id: int
    bus_number: str
    type: BusType
    capacity: int
    manufacturer: str
    model: str
    year_of_manufacture: int
    amenities: List[str]
    seat_layout: List[Seat]
    route_ids: List[int]
    status: BusStatus
    registration_number: Optional[str] = None
    insurance_details: Optional[InsuranceDetails] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class BusListResponse(CamelModel):
    buses: List[BusResponse]
    pagination: PageMeta


class SeatMapResponse(CamelModel):
    bus_id: int
    bus_number: str
    capacity: int
    available_seats: int
    seat_layout: List[Seat]
