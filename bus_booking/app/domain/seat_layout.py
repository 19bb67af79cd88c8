"""
Seat layout generation and pricing.

Buses use a four-abreast layout: columns A-D, window seats at A and D.
"""

import math
from typing import Dict, List

from bus_booking.app.models.enums import SeatPosition, SeatStatus, SeatType

SEATS_PER_ROW = 4
BASE_SEAT_PRICE = 500.0

SLEEPER_MULTIPLIER = 1.5
AC_MULTIPLIER = 1.2
PREMIUM_MULTIPLIER = 1.8
WINDOW_MULTIPLIER = 1.1


def seat_type_for(bus_type: str) -> SeatType:
    return SeatType.SLEEPER if "SLEEPER" in bus_type.upper() else SeatType.SEATER


def calculate_base_price(bus_type: str, seat_type: SeatType, position: SeatPosition) -> float:
    """
    500 base, x1.5 sleeper seat, x1.2 AC bus, x1.8 premium bus, x1.1 window.
    """
    price = BASE_SEAT_PRICE
    bus_type = bus_type.upper()

    if seat_type == SeatType.SLEEPER:
        price *= SLEEPER_MULTIPLIER
    if bus_type == "AC":
        price *= AC_MULTIPLIER
    if bus_type == "PREMIUM":
        price *= PREMIUM_MULTIPLIER
    if position == SeatPosition.WINDOW:
        price *= WINDOW_MULTIPLIER

    return round(price, 2)


def generate_seat_layout(capacity: int, bus_type: str) -> List[Dict]:
    """
    Build ``capacity`` seats numbered 1A, 1B, ... row by row.

    The last row is partial when capacity is not a multiple of four.
    """
    seat_type = seat_type_for(bus_type)
    rows = math.ceil(capacity / SEATS_PER_ROW)
    seats = []

    for row in range(1, rows + 1):
        for col in range(1, SEATS_PER_ROW + 1):
            if len(seats) >= capacity:
                break
            position = SeatPosition.WINDOW if col in (1, SEATS_PER_ROW) else SeatPosition.AISLE
            seats.append({
                "number": f"{row}{chr(64 + col)}",
                "type": seat_type.value,
                "position": position.value,
                "price": calculate_base_price(bus_type, seat_type, position),
                "status": SeatStatus.AVAILABLE.value,
            })

    return seats


def available_seat_count(layout: List[Dict]) -> int:
    return sum(1 for seat in layout if seat.get("status") == SeatStatus.AVAILABLE.value)


def price_for_seats(layout: List[Dict], seat_numbers: List[str]) -> float:
    """Sum of layout prices for ``seat_numbers``; unknown seats raise KeyError."""
    prices = {seat["number"]: seat["price"] for seat in layout}
    return round(sum(prices[number] for number in seat_numbers), 2)
