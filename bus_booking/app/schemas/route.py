"""
Route Pydantic schemas.
"""

from typing import List, Optional
from pydantic import Field
from bus_booking.app.schemas.common import CamelModel, PageMeta, UTCDateTime


class Stop(CamelModel):
    name: str
    arrival_time: Optional[str] = None
    departure_time: Optional[str] = None
    distance_from_start: Optional[float] = Field(None, ge=0)


class RouteCreate(CamelModel):
    source: Optional[str] = Field(None, max_length=100)
    destination: Optional[str] = Field(None, max_length=100)
    distance: Optional[float] = None
    duration: Optional[int] = None
    stops: List[Stop] = Field(default_factory=list)
    is_active: bool = True


class RouteUpdate(CamelModel):
    source: Optional[str] = Field(None, max_length=100)
    destination: Optional[str] = Field(None, max_length=100)
    distance: Optional[float] = None
    duration: Optional[int] = None
    stops: Optional[List[Stop]] = None
    is_active: Optional[bool] = None


class RouteResponse(CamelModel):
    id: int
    source: str
    destination: str
    distance: float
    duration: Optional[int] = None
    estimated_travel_time: int
    stops: List[Stop]
    is_active: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime


class RouteListResponse(CamelModel):
    routes: List[RouteResponse]
    pagination: PageMeta
