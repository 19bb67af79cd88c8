"""
Agent profile Pydantic schemas.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from bus_booking.app.models.enums import VerificationStatus
from bus_booking.app.schemas.common import CamelModel, UTCDateTime
from bus_booking.app.schemas.user import UserResponse


class BankDetails(CamelModel):
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    ifsc: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None

    @field_validator("ifsc")
    @classmethod
    def upper_ifsc(cls, v):
        return v.strip().upper() if v else v


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = "India"
    pincode: Optional[str] = None


class AgentDocument(CamelModel):
    type: str
    url: str
    uploaded_at: Optional[str] = None


class AgentProfileCreate(CamelModel):
    company_name: Optional[str] = None
    gst: Optional[str] = None
    bank_details: Optional[BankDetails] = None
    support_contact: Optional[str] = None
    address: Optional[Address] = None

    @field_validator("gst")
    @classmethod
    def upper_gst(cls, v):
        return v.strip().upper() if v else v


class AgentProfileUpdate(AgentProfileCreate):
    """Partial update. ``userId`` and ``verificationStatus`` are not accepted."""


class DocumentUpload(CamelModel):
    type: Optional[str] = None
    url: Optional[str] = None


class VerificationUpdate(CamelModel):
    verification_status: VerificationStatus


class AgentResponse(CamelModel):
    id: int
    user_id: int
    company_name: str
    gst: str
    bank_details: BankDetails
    support_contact: str
    address: Address
    verification_status: VerificationStatus
    documents: List[AgentDocument] = Field(default_factory=list)
    is_active: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime


class AgentProfileCompleted(CamelModel):
    agent: AgentResponse
    user: UserResponse
    access_token: str
