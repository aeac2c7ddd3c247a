# breeqa/api/v1/organizations.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status

from breeqa.api.deps.auth import get_current_user
from breeqa.api.deps.services import (
    get_invitation_service,
    get_member_service,
    get_organization_service,
)
from breeqa.core.clock import utcnow
from breeqa.models.user import User
from breeqa.schemas.common import ApiResponse
from breeqa.schemas.invitation import InvitationCreate, InvitationOut
from breeqa.schemas.member import MemberOut, MemberRoleUpdate
from breeqa.schemas.organization import (
    AccessOut,
    MyOrganizationOut,
    OrganizationCreate,
    OrganizationOut,
)
from breeqa.services.invitations import InvitationService
from breeqa.services.members import MemberService
from breeqa.services.organizations import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


# =========================================================
# Organizations
# =========================================================
@router.post("", response_model=ApiResponse[OrganizationOut], status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreate,
    user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    """
    Create an organization. The caller becomes its admin.
    """
    organization = await service.create(
        user,
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
    )
    return ApiResponse(data=OrganizationOut.model_validate(organization))


@router.get("", response_model=ApiResponse[List[MyOrganizationOut]])
async def list_my_organizations(
    user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    memberships = await service.list_mine(user)
    return ApiResponse(
        data=[
            MyOrganizationOut(
                organization=OrganizationOut.model_validate(m.organization),
                role=m.role,
                joined_at=m.joined_at,
            )
            for m in memberships
        ]
    )


@router.get("/{organization_id}/access", response_model=ApiResponse[AccessOut])
async def get_my_access(
    organization_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    """
    Caller's role in the organization and the permission keys it grants.
    """
    summary = await service.access(user, organization_id)
    return ApiResponse(data=AccessOut.model_validate(summary))


# =========================================================
# Members
# =========================================================
@router.get("/{organization_id}/members", response_model=ApiResponse[List[MemberOut]])
async def list_members(
    organization_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    members = await service.list_members(user, organization_id)
    return ApiResponse(data=[MemberOut.from_model(m) for m in members])


@router.patch("/{organization_id}/members/{user_id}", response_model=ApiResponse[MemberOut])
async def change_member_role(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: MemberRoleUpdate,
    user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    membership = await service.change_role(user, organization_id, user_id, payload.role)
    return ApiResponse(data=MemberOut.from_model(membership))


@router.delete("/{organization_id}/members/{user_id}", response_model=ApiResponse[MemberOut])
async def suspend_member(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    """
    Removing a member suspends the membership; the row is kept.
    """
    membership = await service.suspend(user, organization_id, user_id)
    return ApiResponse(data=MemberOut.from_model(membership))


# =========================================================
# Invitations (organization-scoped; users:invite)
# =========================================================
@router.post(
    "/{organization_id}/invites",
    response_model=ApiResponse[InvitationOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    organization_id: uuid.UUID,
    payload: InvitationCreate,
    user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    """
    Invite an email address with a role. The email is sent best-effort; the
    invitation stands even if delivery fails.
    """
    now = utcnow()
    invitation = await service.create(user, organization_id, str(payload.email), payload.role, now=now)
    return ApiResponse(data=InvitationOut.from_model(invitation, now))


@router.get("/{organization_id}/invites", response_model=ApiResponse[List[InvitationOut]])
async def list_pending_invitations(
    organization_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    now = utcnow()
    invitations = await service.list_pending(user, organization_id, now=now)
    return ApiResponse(data=[InvitationOut.from_model(inv, now) for inv in invitations])


@router.delete("/{organization_id}/invites/{invitation_id}", response_model=ApiResponse[InvitationOut])
async def revoke_invitation(
    organization_id: uuid.UUID,
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    now = utcnow()
    invitation = await service.revoke(user, organization_id, invitation_id, now=now)
    return ApiResponse(data=InvitationOut.from_model(invitation, now))
