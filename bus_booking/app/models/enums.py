"""
Enumerations shared by models, schemas and guards.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Passenger (default role, created on first OTP login)
        AGENT: Bus operator with a completed agent profile
        ADMIN: System-level access
    """
    USER = "USER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class BusType(str, enum.Enum):
    AC = "AC"
    NON_AC = "NON_AC"
    SLEEPER = "SLEEPER"
    SEATER = "SEATER"
    DELUXE = "DELUXE"
    PREMIUM = "PREMIUM"


class BusStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class SeatType(str, enum.Enum):
    SLEEPER = "SLEEPER"
    SEATER = "SEATER"


class SeatPosition(str, enum.Enum):
    WINDOW = "window"
    AISLE = "aisle"


class SeatStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    MAINTENANCE = "maintenance"


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
