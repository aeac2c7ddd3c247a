from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.auth.permissions import PERM, can_grant_role
from breeqa.core.clock import utcnow
from breeqa.core.config import Settings, settings as default_settings
from breeqa.core.errors import (
    AlreadyMember,
    DuplicateInvitation,
    InvalidOrExpiredInvitation,
    InvalidRequest,
    NotFound,
    Unauthenticated,
    Unauthorized,
)
from breeqa.core.roles import InvitationStatus, Role
from breeqa.crud.organization import get_organization
from breeqa.crud.organization_invitation import InvitationStore
from breeqa.crud.organization_member import MembershipStore
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User
from breeqa.services.access import authorize, require_actor, unit_of_work
from breeqa.services.contracts import InvitationStore as InvitationStoreContract
from breeqa.services.contracts import MembershipResolver, NotificationService

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return secrets.token_urlsafe(48)


class InvitationService:
    """
    Organization invitation lifecycle.

        pending -> accepted | cancelled | expired (derived from expires_at)

    Nothing leaves accepted, cancelled or expired.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        notifier: Optional[NotificationService] = None,
        members: Optional[MembershipResolver] = None,
        invitations: Optional[InvitationStoreContract] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self.notifier = notifier
        self.members = members or MembershipStore(db)
        self.invitations = invitations or InvitationStore(db)
        self.settings = settings or default_settings

    # -----------------------------------------------------
    # Create
    # -----------------------------------------------------
    async def create(
        self,
        actor: Optional[User],
        organization_id: uuid.UUID,
        email: str,
        role: Role,
        *,
        now: Optional[datetime] = None,
    ) -> OrganizationInvitation:
        now = now or utcnow()
        acting_role = await authorize(self.members, actor, organization_id, PERM.USERS_INVITE)
        if not can_grant_role(acting_role, role):
            raise Unauthorized(
                "You cannot invite someone with a role above your own",
                detail={"role": acting_role.value, "requested_role": role.value},
            )

        organization = await get_organization(self.db, organization_id)
        if organization is None:
            raise NotFound("Organization not found")

        email = User.normalize_email(email)
        if "@" not in email:
            raise InvalidRequest("Invalid email format")

        if await self.members.is_email_already_member(organization_id, email):
            raise AlreadyMember()

        async with unit_of_work(self.db):
            existing = await self.invitations.find_pending(organization_id, email)
            if existing is not None:
                if existing.is_redeemable(now):
                    raise DuplicateInvitation()
                # Lapsed but still stored as pending: retire it so it frees the unique slot
                await self.invitations.set_status(existing, InvitationStatus.EXPIRED)

            invitation = await self.invitations.create_invitation(
                organization_id=organization_id,
                email=email,
                role=role,
                token=generate_token(),
                invited_by=actor.id,
                expires_at=now + timedelta(days=self.settings.INVITE_EXPIRY_DAYS),
            )

        logger.info(
            "Invitation %s created: org=%s email=%s role=%s by=%s",
            invitation.id,
            organization_id,
            email,
            role.value,
            actor.id,
        )

        await self._notify(invitation, organization_name=organization.name, inviter=actor)
        return invitation

    async def _notify(self, invitation: OrganizationInvitation, *, organization_name: str, inviter: User) -> None:
        # The invitation row is the source of truth; delivery is best-effort.
        if self.notifier is None:
            logger.warning("No notification service configured; invitation %s not emailed", invitation.id)
            return
        try:
            result = await self.notifier.send(
                invitation,
                organization_name=organization_name,
                inviter_name=inviter.full_name or inviter.email,
            )
        except Exception:
            logger.warning("Email service error for invitation %s", invitation.id, exc_info=True)
            return
        if not result.success:
            logger.warning("Failed to send invitation email for %s: %s", invitation.id, result.error)

    # -----------------------------------------------------
    # Read
    # -----------------------------------------------------
    async def load(self, token: str, *, now: Optional[datetime] = None) -> OrganizationInvitation:
        """
        Public lookup for the invite landing page. Only live invitations are shown.
        """
        now = now or utcnow()
        token = (token or "").strip()
        if not token:
            raise InvalidOrExpiredInvitation("Invitation token is required")

        invitation = await self.invitations.find_by_token(token, with_organization=True)
        if invitation is None or not invitation.is_redeemable(now):
            raise InvalidOrExpiredInvitation()
        return invitation

    async def list_pending(
        self,
        actor: Optional[User],
        organization_id: uuid.UUID,
        *,
        now: Optional[datetime] = None,
    ) -> List[OrganizationInvitation]:
        await authorize(self.members, actor, organization_id, PERM.USERS_INVITE)
        return await self.invitations.list_pending_for_organization(organization_id, now=now or utcnow())

    async def list_mine(self, actor: Optional[User], *, now: Optional[datetime] = None) -> List[OrganizationInvitation]:
        user = require_actor(actor)
        return await self.invitations.list_pending_for_email(user.email, now=now or utcnow())

    # -----------------------------------------------------
    # Accept
    # -----------------------------------------------------
    async def accept(
        self,
        actor: Optional[User],
        token: str,
        *,
        now: Optional[datetime] = None,
    ) -> OrganizationMember:
        """
        Redeem a token: one new (or re-activated) active membership plus
        invitation -> accepted, committed together or not at all.
        """
        if actor is None:
            raise Unauthenticated("You must be logged in to accept this invitation")
        now = now or utcnow()

        token = (token or "").strip()
        if not token:
            raise InvalidOrExpiredInvitation("Invitation token is required")

        async with unit_of_work(self.db):
            invitation = await self.invitations.find_by_token(token, for_update=True)
            if invitation is None:
                raise InvalidOrExpiredInvitation()
            if invitation.status != InvitationStatus.PENDING:
                raise InvalidOrExpiredInvitation(f"Invitation is already {invitation.status.value}")
            if invitation.is_expired(now):
                raise InvalidOrExpiredInvitation("Invitation has expired")

            invited_email = User.normalize_email(invitation.email)
            current_email = User.normalize_email(actor.email)
            if invited_email != current_email:
                raise Unauthorized(
                    "You are signed in with a different email than the invitation.",
                    detail={"invited_email": invited_email, "current_email": current_email},
                )

            existing = await self.members.get_membership(invitation.organization_id, actor.id)
            if existing is not None and existing.is_active:
                raise AlreadyMember("You are already a member of this organization")

            try:
                membership = await self.members.add_member(
                    invitation.organization_id,
                    actor.id,
                    invitation.role,
                    invited_by=invitation.invited_by,
                )
            except IntegrityError as exc:
                raise AlreadyMember("You are already a member of this organization") from exc

            invitation.accepted_at = now
            invitation.accepted_by = actor.id
            await self.invitations.set_status(invitation, InvitationStatus.ACCEPTED)

        logger.info(
            "Invitation %s accepted: org=%s user=%s role=%s",
            invitation.id,
            invitation.organization_id,
            actor.id,
            membership.role.value,
        )

        reloaded = await self.members.get_membership(invitation.organization_id, actor.id, with_user=True)
        return reloaded or membership

    # -----------------------------------------------------
    # Revoke
    # -----------------------------------------------------
    async def revoke(
        self,
        actor: Optional[User],
        organization_id: uuid.UUID,
        invitation_id: uuid.UUID,
        *,
        now: Optional[datetime] = None,
    ) -> OrganizationInvitation:
        now = now or utcnow()
        await authorize(self.members, actor, organization_id, PERM.USERS_INVITE)

        async with unit_of_work(self.db):
            invitation = await self.invitations.get(organization_id, invitation_id, for_update=True)
            if invitation is None:
                raise NotFound("Invitation not found")

            state = invitation.effective_status(now)
            if state != InvitationStatus.PENDING:
                raise InvalidOrExpiredInvitation(f"Invitation is already {state.value}")

            await self.invitations.set_status(invitation, InvitationStatus.CANCELLED)

        logger.info("Invitation %s cancelled by %s", invitation.id, actor.id)
        return invitation
