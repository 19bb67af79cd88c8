"""
Agent database model.

One-to-one extension of a User holding company, banking and compliance data.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from bus_booking.app.db.session import Base
from bus_booking.app.models.enums import VerificationStatus


class Agent(Base):
    """
    Agent (bus operator) profile.

    bank_details: accountNumber, accountHolderName, ifsc, bankName, branchName
    address: street, city, state, country, pincode
    documents: list of {type, url, uploadedAt}
    """
    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)

    company_name = Column(String(100), nullable=False)
    gst = Column(String(20), nullable=False)
    bank_details = Column(JSON, nullable=False)
    support_contact = Column(String(50), nullable=False)
    address = Column(JSON, nullable=False)

    verification_status = Column(
        Enum(VerificationStatus), default=VerificationStatus.PENDING, nullable=False, index=True
    )
    documents = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Agent(id={self.id}, user_id={self.user_id}, company='{self.company_name}')>"
