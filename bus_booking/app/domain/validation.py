"""
Input validation run before records are constructed.

Each validator takes the snake_case dict produced by a request schema's
``model_dump()`` and returns a ValidationResult. Booking validation stops at
the first failure so clients see checks in a fixed order; the entity
validators collect every field error.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel

from bus_booking.app.core.exceptions import ValidationError
from bus_booking.app.models.enums import BusType, Gender

_PHONE_STRIP = re.compile(r"[\s\-\(\)]")
_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{9,14}$")

MIN_PASSENGER_AGE = 1
MAX_PASSENGER_AGE = 120
MAX_BUS_CAPACITY = 100

BANK_DETAIL_FIELDS = ("account_number", "account_holder_name", "ifsc", "bank_name", "branch_name")
ADDRESS_FIELDS = ("street", "city", "state", "pincode")
BUS_NON_NULLABLE = ("type", "capacity", "manufacturer", "model", "year_of_manufacture", "amenities", "route_ids", "status")


@dataclass
class FieldError:
    field: str
    message: str
    details: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "message": self.message, "details": self.details}


@dataclass
class ValidationResult:
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str, details: Optional[str] = None) -> "ValidationResult":
        self.errors.append(FieldError(field_name, message, details))
        return self

    def raise_for_errors(self) -> None:
        """Raise ValidationError (400) carrying the first message."""
        if self.ok:
            return
        first = self.errors[0]
        if len(self.errors) == 1:
            details: Any = first.details or first.message
        else:
            details = [error.as_dict() for error in self.errors]
        raise ValidationError(first.message, details=details)


def normalize_phone(phone: str) -> str:
    """Strip spaces, dashes and parentheses."""
    return _PHONE_STRIP.sub("", phone or "")


def validate_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return bool(_PHONE_PATTERN.match(normalize_phone(phone)))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_booking(data: Dict[str, Any]) -> ValidationResult:
    """
    Booking request checks, in order:

    1. bus_id, route_id, seats and passengers present
    2. at least one passenger
    3. every passenger has name, age and gender; age 1-120; known gender
    4. at least one seat
    5. one seat per passenger
    """
    result = ValidationResult()

    if any(data.get(key) is None for key in ("bus_id", "route_id", "seats", "passengers")):
        return result.add(
            "booking",
            "Missing required fields",
            "busId, routeId, seats, and passengers are required",
        )

    passengers = data["passengers"]
    if not passengers:
        return result.add("passengers", "Passenger information required", "At least one passenger is required")

    valid_genders = {gender.value for gender in Gender}
    for passenger in passengers:
        if _is_blank(passenger.get("name")) or not passenger.get("age") or _is_blank(passenger.get("gender")):
            return result.add(
                "passengers",
                "Incomplete passenger information",
                "Each passenger must have name, age, and gender",
            )

        age = passenger["age"]
        if isinstance(age, bool) or not isinstance(age, (int, float)) or not MIN_PASSENGER_AGE <= age <= MAX_PASSENGER_AGE:
            return result.add(
                "passengers",
                "Invalid passenger age",
                f"Passenger age must be a number between {MIN_PASSENGER_AGE} and {MAX_PASSENGER_AGE}",
            )

        if passenger["gender"].lower() not in valid_genders:
            return result.add("passengers", "Invalid passenger gender", "Gender must be male, female, or other")

    seats = data["seats"]
    if not seats:
        return result.add("seats", "Seat information required", "At least one seat is required")

    if len(seats) != len(passengers):
        return result.add(
            "seats",
            "Seat and passenger count mismatch",
            "Number of seats must match number of passengers",
        )

    return result


def validate_agent_profile(data: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()

    missing = [
        key for key in ("company_name", "gst", "bank_details", "support_contact", "address")
        if not data.get(key)
    ]
    if missing:
        return result.add(
            "agent",
            "Missing required fields for agent profile",
            "companyName, gst, bankDetails, supportContact, and address are required",
        )

    company_name = data["company_name"].strip()
    if not 2 <= len(company_name) <= 100:
        result.add("companyName", "Company name must be between 2 and 100 characters")

    bank_details = data["bank_details"]
    for key in BANK_DETAIL_FIELDS:
        if _is_blank(bank_details.get(key)):
            result.add(f"bankDetails.{key}", f"Bank detail '{key}' is required")

    address = data["address"]
    for key in ADDRESS_FIELDS:
        if _is_blank(address.get(key)):
            result.add(f"address.{key}", f"Address field '{key}' is required")

    return result


def validate_bus(data: Dict[str, Any], partial: bool = False) -> ValidationResult:
    """
    Bus create (or, with ``partial``, update) checks.
    """
    result = ValidationResult()

    required = ("bus_number", "type", "capacity", "manufacturer", "model", "year_of_manufacture")
    if not partial:
        missing = [key for key in required if _is_blank(data.get(key))]
        if missing:
            return result.add(
                "bus",
                "Missing required fields",
                "busNumber, type, capacity, manufacturer, model, and yearOfManufacture are required",
            )
    else:
        # Only registrationNumber and insuranceDetails may be cleared
        cleared = [key for key in BUS_NON_NULLABLE if key in data and data[key] is None]
        if cleared:
            return result.add(
                "bus",
                "Fields cannot be null",
                f"{', '.join(to_camel(key) for key in cleared)} cannot be set to null",
            )

    bus_type = data.get("type")
    if bus_type is not None and bus_type not in {t.value for t in BusType}:
        result.add("type", f"Invalid bus type: {bus_type}")

    capacity = data.get("capacity")
    if capacity is not None and not 1 <= capacity <= MAX_BUS_CAPACITY:
        result.add("capacity", f"Capacity must be between 1 and {MAX_BUS_CAPACITY}")

    year = data.get("year_of_manufacture")
    if year is not None and not 1950 <= year <= datetime.now().year + 1:
        result.add("yearOfManufacture", "Year of manufacture is out of range")

    return result


def validate_route(data: Dict[str, Any], partial: bool = False) -> ValidationResult:
    result = ValidationResult()

    if not partial and (_is_blank(data.get("source")) or _is_blank(data.get("destination")) or data.get("distance") is None):
        return result.add("route", "Missing required fields", "source, destination, and distance are required")

    source = data.get("source")
    destination = data.get("destination")
    if source and destination and source.strip().lower() == destination.strip().lower():
        result.add("destination", "Source and destination must differ")

    distance = data.get("distance")
    if distance is not None and distance < 0:
        result.add("distance", "Distance cannot be negative")

    duration = data.get("duration")
    if duration is not None and duration < 0:
        result.add("duration", "Duration cannot be negative")

    return result
