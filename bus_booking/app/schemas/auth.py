"""
Authentication Pydantic schemas.

Defines request and response schemas for the OTP login and token endpoints.
Required fields are checked in the endpoints so a missing value reports the
specific error code rather than a generic schema failure.
"""

from typing import Optional
from pydantic import Field
from bus_booking.app.schemas.common import CamelModel, UTCDateTime
from bus_booking.app.schemas.user import UserResponse


class SendOTPRequest(CamelModel):
    phone: Optional[str] = Field(None, description="Phone number, optionally with + country code")


class VerifyOTPRequest(CamelModel):
    phone: Optional[str] = None
    otp: Optional[str] = Field(None, description="Code received over SMS")


class OTPSentResponse(CamelModel):
    """
    Returned by send/resend. ``otp_sent`` carries the plaintext code outside
    production only.
    """
    phone_number: str
    otp_sent: Optional[str] = None
    otp_expiry: UTCDateTime


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(CamelModel):
    user: UserResponse
    tokens: TokenPair
    is_new_user: bool
    session_id: int


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None
