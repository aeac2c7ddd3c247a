# breeqa/crud/organization_member.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from breeqa.core.clock import utcnow
from breeqa.core.errors import NotFound
from breeqa.core.roles import MemberStatus, Role, parse_role
from breeqa.crud.errors import store_call
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User


class MembershipStore:
    """
    SQL implementation of MembershipResolver. Writes are flushed, never committed:
    the calling service owns the transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @store_call
    async def resolve_role(self, user_id: uuid.UUID, organization_id: uuid.UUID) -> Optional[Role]:
        stmt = select(OrganizationMember.role).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.status == MemberStatus.ACTIVE,
        )
        role = (await self.db.execute(stmt)).scalar_one_or_none()
        return parse_role(role)

    @store_call
    async def get_membership(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        with_user: bool = False,
        for_update: bool = False,
    ) -> Optional[OrganizationMember]:
        stmt = select(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
        )
        if with_user:
            # populate_existing: the row may already sit in the identity map without its user
            stmt = stmt.options(joinedload(OrganizationMember.user)).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update(of=OrganizationMember)
        return (await self.db.execute(stmt)).unique().scalar_one_or_none()

    @store_call
    async def list_members(
        self,
        organization_id: uuid.UUID,
        *,
        include_inactive: bool = False,
    ) -> List[OrganizationMember]:
        stmt = (
            select(OrganizationMember)
            .options(joinedload(OrganizationMember.user))
            .where(OrganizationMember.organization_id == organization_id)
            .order_by(OrganizationMember.joined_at.desc())
            .execution_options(populate_existing=True)
        )
        if not include_inactive:
            stmt = stmt.where(OrganizationMember.status == MemberStatus.ACTIVE)
        res = await self.db.execute(stmt)
        return list(res.scalars().unique().all())

    @store_call
    async def list_for_user(self, user_id: uuid.UUID) -> List[OrganizationMember]:
        """
        Active memberships of a user with their organizations (org switcher).
        """
        stmt = (
            select(OrganizationMember)
            .options(joinedload(OrganizationMember.organization))
            .where(OrganizationMember.user_id == user_id)
            .where(OrganizationMember.status == MemberStatus.ACTIVE)
            .order_by(OrganizationMember.joined_at.desc())
            .execution_options(populate_existing=True)
        )
        res = await self.db.execute(stmt)
        return list(res.scalars().unique().all())

    async def _require(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> OrganizationMember:
        membership = await self.get_membership(organization_id, user_id, for_update=True)
        if membership is None:
            raise NotFound("Member not found")
        return membership

    @store_call
    async def set_role(self, organization_id: uuid.UUID, user_id: uuid.UUID, role: Role) -> OrganizationMember:
        membership = await self._require(organization_id, user_id)
        membership.role = role
        await self.db.flush()
        return membership

    @store_call
    async def set_status(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        status: MemberStatus,
    ) -> OrganizationMember:
        membership = await self._require(organization_id, user_id)
        membership.status = status
        await self.db.flush()
        return membership

    @store_call
    async def is_email_already_member(self, organization_id: uuid.UUID, email: str) -> bool:
        stmt = (
            select(func.count(OrganizationMember.id))
            .join(User, User.id == OrganizationMember.user_id)
            .where(OrganizationMember.organization_id == organization_id)
            .where(OrganizationMember.status == MemberStatus.ACTIVE)
            .where(User.email == User.normalize_email(email))
        )
        res = await self.db.execute(stmt)
        return int(res.scalar() or 0) > 0

    @store_call
    async def add_member(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Role,
        *,
        invited_by: Optional[uuid.UUID] = None,
    ) -> OrganizationMember:
        """
        Create an active membership, or re-activate the existing (suspended /
        pending) row for the pair with the new role. Rows are never deleted, so
        the unique (org, user) row is reused rather than duplicated.
        """
        membership = await self.get_membership(organization_id, user_id, for_update=True)
        if membership is None:
            membership = OrganizationMember(
                organization_id=organization_id,
                user_id=user_id,
                role=role,
                status=MemberStatus.ACTIVE,
                invited_by=invited_by,
                joined_at=utcnow(),
            )
            self.db.add(membership)
        else:
            membership.role = role
            membership.status = MemberStatus.ACTIVE
            membership.invited_by = invited_by
            membership.joined_at = utcnow()

        await self.db.flush()
        return membership
