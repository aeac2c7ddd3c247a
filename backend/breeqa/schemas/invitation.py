from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from breeqa.core.roles import InvitationStatus, Role
from breeqa.models.organization_invitation import OrganizationInvitation


class InvitationCreate(BaseModel):
    email: EmailStr
    role: Role = Field(..., description="Role granted on acceptance")


class InvitationOut(BaseModel):
    id: UUID
    organization_id: UUID
    email: str
    role: Role
    token: str
    status: InvitationStatus
    invited_by: Optional[UUID] = None
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[UUID] = None
    created_at: datetime

    @classmethod
    def from_model(cls, inv: OrganizationInvitation, now: datetime) -> "InvitationOut":
        # status is the effective one: lapsed pending invitations read as expired
        return cls(
            id=inv.id,
            organization_id=inv.organization_id,
            email=inv.email,
            role=inv.role,
            token=inv.token,
            status=inv.effective_status(now),
            invited_by=inv.invited_by,
            expires_at=inv.expires_at,
            accepted_at=inv.accepted_at,
            accepted_by=inv.accepted_by,
            created_at=inv.created_at,
        )


class InvitationPreviewOut(BaseModel):
    """
    What the invite landing page / "my invitations" list shows. No token:
    the holder already has it.
    """

    id: UUID
    organization_id: UUID
    organization_name: str
    email: str
    role: Role
    inviter_name: Optional[str] = None
    expires_at: datetime

    @classmethod
    def from_model(cls, inv: OrganizationInvitation) -> "InvitationPreviewOut":
        # organization + inviter must be eagerly loaded
        inviter = inv.inviter
        return cls(
            id=inv.id,
            organization_id=inv.organization_id,
            organization_name=inv.organization.name,
            email=inv.email,
            role=inv.role,
            inviter_name=(inviter.full_name or inviter.email) if inviter is not None else None,
            expires_at=inv.expires_at,
        )


class AcceptInvitation(BaseModel):
    token: str = Field(..., min_length=1, description="Invitation token")
