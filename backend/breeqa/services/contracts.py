"""
Collaborator seams the access services depend on.

The SQL-backed stores in breeqa.crud and the email sender in
breeqa.services.notifications are the production implementations; tests may
substitute anything that satisfies these protocols.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from breeqa.core.roles import InvitationStatus, MemberStatus, Role
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.models.organization_member import OrganizationMember


class MembershipResolver(Protocol):
    async def resolve_role(self, user_id: uuid.UUID, organization_id: uuid.UUID) -> Optional[Role]:
        """Role of the ACTIVE membership, or None. Never served from a cache."""
        ...

    async def get_membership(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, *, with_user: bool = False
    ) -> Optional[OrganizationMember]: ...

    async def list_members(
        self, organization_id: uuid.UUID, *, include_inactive: bool = False
    ) -> List[OrganizationMember]: ...

    async def set_role(self, organization_id: uuid.UUID, user_id: uuid.UUID, role: Role) -> OrganizationMember: ...

    async def set_status(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, status: MemberStatus
    ) -> OrganizationMember: ...

    async def is_email_already_member(self, organization_id: uuid.UUID, email: str) -> bool: ...

    async def add_member(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Role,
        *,
        invited_by: Optional[uuid.UUID] = None,
    ) -> OrganizationMember: ...


class InvitationStore(Protocol):
    async def create_invitation(
        self,
        *,
        organization_id: uuid.UUID,
        email: str,
        role: Role,
        token: str,
        invited_by: uuid.UUID,
        expires_at: datetime,
    ) -> OrganizationInvitation: ...

    async def find_pending(self, organization_id: uuid.UUID, email: str) -> Optional[OrganizationInvitation]: ...

    async def find_by_token(
        self, token: str, *, for_update: bool = False, with_organization: bool = False
    ) -> Optional[OrganizationInvitation]: ...

    async def get(
        self, organization_id: uuid.UUID, invitation_id: uuid.UUID, *, for_update: bool = False
    ) -> Optional[OrganizationInvitation]: ...

    async def set_status(self, invitation: OrganizationInvitation, status: InvitationStatus) -> OrganizationInvitation: ...

    async def list_pending_for_organization(
        self, organization_id: uuid.UUID, *, now: datetime
    ) -> List[OrganizationInvitation]: ...

    async def list_pending_for_email(self, email: str, *, now: datetime) -> List[OrganizationInvitation]: ...


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: Optional[str] = None


class NotificationService(Protocol):
    async def send(
        self,
        invitation: OrganizationInvitation,
        *,
        organization_name: str,
        inviter_name: Optional[str] = None,
    ) -> NotificationResult: ...
