from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from breeqa.core.errors import DuplicateInvitation
from breeqa.core.roles import InvitationStatus, Role
from breeqa.crud.errors import store_call
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.models.user import User

logger = logging.getLogger(__name__)


class InvitationStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @store_call
    async def create_invitation(
        self,
        *,
        organization_id: uuid.UUID,
        email: str,
        role: Role,
        token: str,
        invited_by: uuid.UUID,
        expires_at: datetime,
    ) -> OrganizationInvitation:
        invitation = OrganizationInvitation(
            organization_id=organization_id,
            email=User.normalize_email(email),
            role=role,
            token=token,
            invited_by=invited_by,
            expires_at=expires_at,
            status=InvitationStatus.PENDING,
        )
        self.db.add(invitation)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            # Partial unique index on pending (org, email): another writer got there first.
            # The calling unit of work rolls back.
            logger.info("Pending invitation race lost for org=%s email=%s", organization_id, invitation.email)
            raise DuplicateInvitation() from exc
        return invitation

    @store_call
    async def find_pending(self, organization_id: uuid.UUID, email: str) -> Optional[OrganizationInvitation]:
        """
        Stored-pending invitation for the pair, expired or not. Callers apply
        effective_status() to tell the two apart.
        """
        stmt = (
            select(OrganizationInvitation)
            .where(OrganizationInvitation.organization_id == organization_id)
            .where(OrganizationInvitation.email == User.normalize_email(email))
            .where(OrganizationInvitation.status == InvitationStatus.PENDING)
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    @store_call
    async def find_by_token(
        self,
        token: str,
        *,
        for_update: bool = False,
        with_organization: bool = False,
    ) -> Optional[OrganizationInvitation]:
        stmt = select(OrganizationInvitation).where(OrganizationInvitation.token == token)
        if with_organization:
            stmt = stmt.options(
                joinedload(OrganizationInvitation.organization),
                joinedload(OrganizationInvitation.inviter),
            ).execution_options(populate_existing=True)
        if for_update:
            # Lock the invitation row to serialize concurrent accepts
            stmt = stmt.with_for_update(of=OrganizationInvitation)
        return (await self.db.execute(stmt)).unique().scalar_one_or_none()

    @store_call
    async def get(
        self,
        organization_id: uuid.UUID,
        invitation_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> Optional[OrganizationInvitation]:
        stmt = select(OrganizationInvitation).where(
            OrganizationInvitation.id == invitation_id,
            OrganizationInvitation.organization_id == organization_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.db.execute(stmt)).scalar_one_or_none()

    @store_call
    async def set_status(
        self,
        invitation: OrganizationInvitation,
        status: InvitationStatus,
    ) -> OrganizationInvitation:
        invitation.status = status
        await self.db.flush()
        return invitation

    @store_call
    async def list_pending_for_organization(
        self,
        organization_id: uuid.UUID,
        *,
        now: datetime,
    ) -> List[OrganizationInvitation]:
        stmt = (
            select(OrganizationInvitation)
            .options(joinedload(OrganizationInvitation.inviter))
            .where(OrganizationInvitation.organization_id == organization_id)
            .where(OrganizationInvitation.status == InvitationStatus.PENDING)
            .where(OrganizationInvitation.expires_at > now)
            .order_by(OrganizationInvitation.created_at.desc())
        )
        res = await self.db.execute(stmt)
        return list(res.scalars().unique().all())

    @store_call
    async def list_pending_for_email(self, email: str, *, now: datetime) -> List[OrganizationInvitation]:
        stmt = (
            select(OrganizationInvitation)
            .options(
                joinedload(OrganizationInvitation.organization),
                joinedload(OrganizationInvitation.inviter),
            )
            .where(OrganizationInvitation.email == User.normalize_email(email))
            .where(OrganizationInvitation.status == InvitationStatus.PENDING)
            .where(OrganizationInvitation.expires_at > now)
            .order_by(OrganizationInvitation.created_at.desc())
            .execution_options(populate_existing=True)
        )
        res = await self.db.execute(stmt)
        return list(res.scalars().unique().all())
