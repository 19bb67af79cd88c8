"""
Agent profile API endpoints.

Completing a profile promotes the user to AGENT. The response carries a new
access token for the caller's session, since the old one still says USER.
"""

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from bus_booking.app.core.guards import require_admin
from bus_booking.app.core.jwt import create_access_token
from bus_booking.app.core.responses import success_response
from bus_booking.app.core.time_utils import iso_timestamp
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.validation import validate_agent_profile
from bus_booking.app.models.agent import Agent
from bus_booking.app.models.enums import UserRole, VerificationStatus
from bus_booking.app.schemas.agent import (
    AgentDocument,
    AgentProfileCompleted,
    AgentProfileCreate,
    AgentProfileUpdate,
    AgentResponse,
    DocumentUpload,
    VerificationUpdate,
)
from bus_booking.app.schemas.user import UserResponse
from bus_booking.app.services.audit import AuditAction, log_actor_event
from bus_booking.app.services.user_service import UserService

router = APIRouter(prefix="/agents", tags=["Agents"])


async def get_agent_for_user(db: AsyncSession, user_id: int) -> Agent:
    result = await db.execute(select(Agent).where(Agent.user_id == user_id))
    agent = result.scalar_one_or_none()
    if not agent:
        raise ResourceNotFoundError("Agent profile", details="No agent profile exists for this user")
    return agent


@router.post("/complete-profile", status_code=status.HTTP_201_CREATED)
async def complete_profile(
    request: Request,
    body: AgentProfileCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = body.model_dump()
    validate_agent_profile(data).raise_for_errors()

    user = await UserService.get_or_404(db, current_user["user_id"])

    existing = await db.execute(select(Agent.id).where(Agent.user_id == user.id))
    if existing.first() is not None:
        raise ConflictError("Agent profile already exists", error_code="AGENT_PROFILE_EXISTS")

    agent = Agent(
        user_id=user.id,
        company_name=body.company_name.strip(),
        gst=body.gst,
        bank_details=body.bank_details.model_dump(by_alias=True),
        support_contact=body.support_contact,
        address=body.address.model_dump(by_alias=True),
        verification_status=VerificationStatus.PENDING,
        documents=[],
    )
    db.add(agent)
    if user.role == UserRole.USER:
        user.role = UserRole.AGENT
    await db.commit()
    await db.refresh(agent)
    await db.refresh(user)

    access_token = create_access_token({
        "sub": user.phone,
        "user_id": user.id,
        "phone": user.phone,
        "role": user.role.value,
        "sid": current_user.get("sid"),
    })

    await log_actor_event(
        db,
        AuditAction.AGENT_PROFILE_COMPLETED,
        current_user,
        target_user_id=user.id,
        metadata={"agent_id": agent.id},
        ip_address=get_client_ip(request),
    )

    data = AgentProfileCompleted(
        agent=AgentResponse.model_validate(agent),
        user=UserResponse.model_validate(user),
        access_token=access_token,
    )
    return success_response(request, data, "Agent profile completed successfully", status_code=status.HTTP_201_CREATED)


@router.get("/profile")
async def get_profile(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    agent = await get_agent_for_user(db, current_user["user_id"])
    return success_response(request, AgentResponse.model_validate(agent), "Agent profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    request: Request,
    body: AgentProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update; nested objects are replaced whole."""
    agent = await get_agent_for_user(db, current_user["user_id"])
    changes = body.model_dump(exclude_unset=True)

    current = AgentResponse.model_validate(agent)
    merged = {
        "company_name": changes["company_name"] if "company_name" in changes else current.company_name,
        "gst": changes["gst"] if "gst" in changes else current.gst,
        "bank_details": changes["bank_details"] if "bank_details" in changes else current.bank_details.model_dump(),
        "support_contact": changes["support_contact"] if "support_contact" in changes else current.support_contact,
        "address": changes["address"] if "address" in changes else current.address.model_dump(),
    }
    validate_agent_profile(merged).raise_for_errors()

    if "company_name" in changes:
        agent.company_name = body.company_name.strip()
    if "gst" in changes:
        agent.gst = body.gst
    if "support_contact" in changes:
        agent.support_contact = body.support_contact
    if "bank_details" in changes:
        agent.bank_details = body.bank_details.model_dump(by_alias=True)
    if "address" in changes:
        agent.address = body.address.model_dump(by_alias=True)

    await db.commit()
    await db.refresh(agent)
    return success_response(request, AgentResponse.model_validate(agent), "Agent profile updated successfully")


@router.post("/documents", status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    body: DocumentUpload,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Attach a document reference (type + URL) to the caller's profile."""
    if not body.type or not body.url:
        raise ValidationError("Document type and URL are required")

    agent = await get_agent_for_user(db, current_user["user_id"])
    document = AgentDocument(type=body.type, url=body.url, uploaded_at=iso_timestamp())
    # Reassign so the JSON column is flagged dirty
    agent.documents = [*(agent.documents or []), document.model_dump(by_alias=True)]
    await db.commit()

    return success_response(
        request, {"document": document}, "Document uploaded successfully", status_code=status.HTTP_201_CREATED
    )


@router.patch("/{agent_id}/verification")
async def set_verification_status(
    request: Request,
    body: VerificationUpdate,
    agent_id: int = Path(..., ge=1),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if body.verification_status == VerificationStatus.PENDING:
        raise ValidationError(
            "Invalid verification status",
            details="Verification status must be VERIFIED or REJECTED",
        )

    agent = await db.get(Agent, agent_id)
    if not agent:
        raise ResourceNotFoundError("Agent", agent_id)

    agent.verification_status = body.verification_status
    await db.commit()
    await db.refresh(agent)

    await log_actor_event(
        db,
        AuditAction.AGENT_VERIFIED,
        admin,
        target_user_id=agent.user_id,
        metadata={"agent_id": agent.id, "verification_status": body.verification_status.value},
        ip_address=get_client_ip(request),
    )
    return success_response(request, AgentResponse.model_validate(agent), "Agent verification status updated")
