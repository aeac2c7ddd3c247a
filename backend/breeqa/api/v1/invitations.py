# breeqa/api/v1/invitations.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from breeqa.api.deps.auth import get_current_user
from breeqa.api.deps.services import get_invitation_service
from breeqa.core.clock import utcnow
from breeqa.models.user import User
from breeqa.schemas.common import ApiResponse
from breeqa.schemas.invitation import AcceptInvitation, InvitationPreviewOut
from breeqa.schemas.member import MemberOut
from breeqa.services.invitations import InvitationService

router = APIRouter(prefix="/invitations", tags=["invitations"])


# NOTE: /mine is declared before /{token} so it isn't captured as a token
@router.get("/mine", response_model=ApiResponse[List[InvitationPreviewOut]])
async def list_my_invitations(
    user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    """
    Live invitations addressed to the caller's email, across organizations.
    """
    invitations = await service.list_mine(user, now=utcnow())
    return ApiResponse(data=[InvitationPreviewOut.from_model(inv) for inv in invitations])


@router.get("/{token}", response_model=ApiResponse[InvitationPreviewOut])
async def get_invitation(
    token: str,
    service: InvitationService = Depends(get_invitation_service),
):
    """
    Public: the invite landing page shows org, role and inviter before sign-in.
    """
    invitation = await service.load(token, now=utcnow())
    return ApiResponse(data=InvitationPreviewOut.from_model(invitation))


@router.post("/accept", response_model=ApiResponse[MemberOut])
async def accept_invitation(
    payload: AcceptInvitation,
    user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    membership = await service.accept(user, payload.token, now=utcnow())
    return ApiResponse(data=MemberOut.from_model(membership))
