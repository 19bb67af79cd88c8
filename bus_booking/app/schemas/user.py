"""
User Pydantic schemas.
"""

from typing import Optional
from pydantic import EmailStr, Field, field_validator
from bus_booking.app.models.enums import UserRole, UserStatus
from bus_booking.app.schemas.common import CamelModel, UTCDateTime


class UserResponse(CamelModel):
    """
    Schema for user information response.

    Used by GET /users/me and embedded in login responses.
    """
    id: int
    phone: str
    name: str
    email: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: UTCDateTime
    updated_at: UTCDateTime


class UserUpdate(CamelModel):
    """Profile update; send ``email: null`` to clear the address."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower() if v else v


class RoleUpdate(CamelModel):
    role: str


class StatusUpdate(CamelModel):
    status: UserStatus
