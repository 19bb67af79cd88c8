"""
Public bus search endpoints.

Results come from the static catalogue in ``search_service``; no
authentication is required.
"""

from typing import Optional

from fastapi import APIRouter, Path, Query, Request

from bus_booking.app.core.responses import success_response
from bus_booking.app.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("/buses")
async def search_buses(
    request: Request,
    source: Optional[str] = Query(None, alias="from"),
    destination: Optional[str] = Query(None, alias="to"),
    travel_date: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    women_only: bool = Query(False, alias="womenOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    data = SearchService.search(source, destination, travel_date, women_only, page, limit)
    return success_response(request, data, "Buses retrieved successfully")


@router.get("/buses/{bus_id}")
async def get_bus_details(request: Request, bus_id: int = Path(...)):
    return success_response(request, SearchService.get_details(bus_id), "Bus details retrieved successfully")


@router.get("/filter")
async def filter_buses(
    request: Request,
    bus_type: Optional[str] = Query(None, alias="busType"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    amenities: Optional[str] = Query(None, description="Comma-separated amenity names"),
    departure_time: Optional[str] = Query(None, alias="departureTime"),
    arrival_time: Optional[str] = Query(None, alias="arrivalTime"),
):
    """Filter the catalogue. Departure and arrival times are echoed back but not applied."""
    data = SearchService.filter(
        bus_type=bus_type,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        amenities=amenities,
        departure_time=departure_time,
        arrival_time=arrival_time,
    )
    return success_response(request, data, "Filtered buses retrieved successfully")
