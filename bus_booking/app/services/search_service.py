"""
Bus search over a static catalogue.

Search does not query the buses table; results come from the fixture list
below. Seats beyond each bus's ``availableSeats`` are marked booked.
"""

import math
from datetime import date
from typing import Any, Dict, List, Optional

from bus_booking.app.core.exceptions import ResourceNotFoundError, ValidationError
from bus_booking.app.core.logging import get_logger
from bus_booking.app.domain.seat_layout import generate_seat_layout
from bus_booking.app.models.enums import SeatStatus

logger = get_logger(__name__)


def _fixture_layout(capacity: int, bus_type: str, available: int) -> List[Dict]:
    layout = generate_seat_layout(capacity, bus_type)
    for index, seat in enumerate(layout):
        if index >= available:
            seat["status"] = SeatStatus.BOOKED.value
    return layout


def _fixture(
    bus_id: int, bus_number: str, bus_type: str, capacity: int, manufacturer: str, model: str,
    year: int, amenities: List[str], insurer: str, policy: str, insurance_expiry: str,
    departure: str, arrival: str, price: float, rating: float, available: int,
) -> Dict[str, Any]:
    return {
        "id": bus_id,
        "agentId": None,
        "busNumber": bus_number,
        "type": bus_type,
        "capacity": capacity,
        "manufacturer": manufacturer,
        "model": model,
        "yearOfManufacture": year,
        "amenities": amenities,
        "seatLayout": _fixture_layout(capacity, bus_type, available),
        "routeIds": [],
        "status": "active",
        "registrationNumber": bus_number,
        "insuranceDetails": {"company": insurer, "policyNumber": policy, "expiryDate": insurance_expiry},
        "departureTime": departure,
        "arrivalTime": arrival,
        "price": price,
        "rating": rating,
        "availableSeats": available,
    }


FIXTURE_BUSES: List[Dict[str, Any]] = [
    _fixture(1, "MH12AB1234", "AC", 40, "Volvo", "9400", 2022,
             ["WiFi", "Water", "Charging Point", "Movie"],
             "ICICI Lombard", "IC123456789", "2025-12-31", "06:00", "12:00", 800, 4.5, 25),
    _fixture(2, "DL01CD5678", "NON_AC", 32, "Tata", "Marcopolo", 2021,
             ["Water", "Charging Point"],
             "HDFC ERGO", "HD987654321", "2025-06-30", "08:30", "14:30", 500, 4.2, 18),
    _fixture(3, "KA05EF9012", "SLEEPER", 24, "Ashok Leyland", "Space", 2023,
             ["WiFi", "Water", "Blanket", "Movie", "Charging Point"],
             "Bajaj Allianz", "BA456789123", "2026-01-15", "21:00", "05:00", 1200, 4.8, 12),
    _fixture(4, "TN10GH3456", "DELUXE", 45, "Scania", "Touring", 2022,
             ["WiFi", "Water", "Snacks", "Movie", "Charging Point", "Toilet"],
             "Reliance General", "RG789123456", "2025-09-20", "19:30", "04:30", 1500, 4.9, 30),
    _fixture(5, "WB07IJ7890", "PREMIUM", 35, "Mercedes-Benz", "Tourismo", 2023,
             ["WiFi", "Water", "Gourmet Meal", "Movie", "Charging Point", "Toilet", "Personal TV"],
             "New India Assurance", "NI321654987", "2026-03-10", "15:00", "22:00", 2000, 4.7, 8),
]


def parse_search_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(
            "Invalid date format",
            details="Please provide a valid date in YYYY-MM-DD format",
            error_code="INVALID_DATE",
        )


class SearchService:

    @staticmethod
    def search(
        source: Optional[str],
        destination: Optional[str],
        travel_date: Optional[str],
        women_only: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        if not source or not destination or not travel_date:
            raise ValidationError(
                "Missing required search parameters",
                details="from, to, and date are required for bus search",
            )
        search_date = parse_search_date(travel_date)

        buses = list(FIXTURE_BUSES)
        if women_only:
            logger.debug("Women-only filter requested; catalogue has no women-only buses flagged")

        start = (page - 1) * limit
        return {
            "buses": buses[start:start + limit],
            "searchMetadata": {
                "from": source,
                "to": destination,
                "date": search_date.isoformat(),
                "womenOnly": women_only,
                "totalResults": len(buses),
                "currentPage": page,
                "totalPages": math.ceil(len(buses) / limit),
                "resultsPerPage": limit,
            },
        }

    @staticmethod
    def get_details(bus_id: int) -> Dict[str, Any]:
        for bus in FIXTURE_BUSES:
            if bus["id"] == bus_id:
                return bus
        raise ResourceNotFoundError("Bus", bus_id)

    @staticmethod
    def filter(
        bus_type: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_rating: Optional[float] = None,
        amenities: Optional[str] = None,
        departure_time: Optional[str] = None,
        arrival_time: Optional[str] = None,
    ) -> Dict[str, Any]:
        buses = list(FIXTURE_BUSES)

        if bus_type:
            buses = [bus for bus in buses if bus["type"] == bus_type]

        if min_price is not None or max_price is not None:
            low = min_price if min_price is not None else 0
            high = max_price if max_price is not None else math.inf
            buses = [bus for bus in buses if low <= bus["price"] <= high]

        if min_rating is not None:
            buses = [bus for bus in buses if bus["rating"] >= min_rating]

        amenity_list = [a.strip() for a in amenities.split(",") if a.strip()] if amenities else None
        if amenity_list:
            buses = [bus for bus in buses if all(a in bus["amenities"] for a in amenity_list)]

        return {
            "buses": buses,
            "totalResults": len(buses),
            "appliedFilters": {
                "busType": bus_type,
                "priceRange": (
                    {"min": min_price, "max": max_price}
                    if min_price is not None or max_price is not None else None
                ),
                "minRating": min_rating,
                "amenities": amenity_list,
                "departureTime": departure_time,
                "arrivalTime": arrival_time,
            },
        }
