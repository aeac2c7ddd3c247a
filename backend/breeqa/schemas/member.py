from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from breeqa.core.roles import MemberStatus, Role
from breeqa.models.organization_member import OrganizationMember


class MemberOut(BaseModel):
    organization_id: UUID
    user_id: UUID
    email: str
    full_name: Optional[str] = None
    role: Role
    status: MemberStatus
    invited_by: Optional[UUID] = None
    joined_at: datetime

    @classmethod
    def from_model(cls, membership: OrganizationMember) -> "MemberOut":
        # membership.user must be eagerly loaded by the query
        return cls(
            organization_id=membership.organization_id,
            user_id=membership.user_id,
            email=membership.user.email,
            full_name=membership.user.full_name,
            role=membership.role,
            status=membership.status,
            invited_by=membership.invited_by,
            joined_at=membership.joined_at,
        )


class MemberRoleUpdate(BaseModel):
    role: Role
