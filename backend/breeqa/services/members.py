from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.auth.permissions import PERM, can_grant_role, can_manage_role, permitted_keys
from breeqa.core.errors import NotFound, Unauthorized
from breeqa.core.roles import MemberStatus, Role
from breeqa.crud.organization_member import MembershipStore
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User
from breeqa.services.access import authorize, require_actor, unit_of_work
from breeqa.services.contracts import MembershipResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessSummary:
    organization_id: uuid.UUID
    role: Optional[Role]
    permissions: List[str]


class MemberService:
    def __init__(self, db: AsyncSession, *, members: Optional[MembershipResolver] = None) -> None:
        self.db = db
        self.members = members or MembershipStore(db)

    async def access(self, actor: Optional[User], organization_id: uuid.UUID) -> AccessSummary:
        """
        The caller's role and the permission keys it grants. Non-members get
        role None and no keys rather than an error.
        """
        user = require_actor(actor)
        role = await self.members.resolve_role(user.id, organization_id)
        return AccessSummary(organization_id=organization_id, role=role, permissions=permitted_keys(role))

    async def list_members(self, actor: Optional[User], organization_id: uuid.UUID) -> List[OrganizationMember]:
        await authorize(self.members, actor, organization_id, PERM.ORG_VIEW)
        return await self.members.list_members(organization_id)

    async def _active_target(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> OrganizationMember:
        target = await self.members.get_membership(organization_id, user_id)
        if target is None or not target.is_active:
            raise NotFound("Member not found")
        return target

    async def change_role(
        self,
        actor: Optional[User],
        organization_id: uuid.UUID,
        target_user_id: uuid.UUID,
        new_role: Role,
    ) -> OrganizationMember:
        """
        users:manage from the permission table, then the hierarchy: the actor
        must outrank the member's current role and may not hand out a role
        above their own.
        """
        acting_role = await authorize(self.members, actor, organization_id, PERM.USERS_MANAGE)
        target = await self._active_target(organization_id, target_user_id)

        if not can_manage_role(acting_role, target.role):
            raise Unauthorized(
                "You cannot change the role of a member at or above your own role",
                detail={"role": acting_role.value, "target_role": target.role.value},
            )
        if not can_grant_role(acting_role, new_role):
            raise Unauthorized(
                "You cannot grant a role above your own",
                detail={"role": acting_role.value, "requested_role": new_role.value},
            )

        previous = target.role
        if previous != new_role:
            async with unit_of_work(self.db):
                await self.members.set_role(organization_id, target_user_id, new_role)
            logger.info(
                "Member role changed: org=%s user=%s %s -> %s by=%s",
                organization_id,
                target_user_id,
                previous.value,
                new_role.value,
                actor.id,
            )

        return await self.members.get_membership(organization_id, target_user_id, with_user=True)

    async def suspend(
        self,
        actor: Optional[User],
        organization_id: uuid.UUID,
        target_user_id: uuid.UUID,
    ) -> OrganizationMember:
        """
        active -> suspended. The row stays for history; a manager can suspend
        developers and below but never an admin or another manager.
        """
        acting_role = await authorize(self.members, actor, organization_id, PERM.USERS_SUSPEND)
        target = await self._active_target(organization_id, target_user_id)

        if not can_manage_role(acting_role, target.role):
            raise Unauthorized(
                "You cannot suspend a member at or above your own role",
                detail={"role": acting_role.value, "target_role": target.role.value},
            )

        async with unit_of_work(self.db):
            await self.members.set_status(organization_id, target_user_id, MemberStatus.SUSPENDED)

        logger.info("Member suspended: org=%s user=%s by=%s", organization_id, target_user_id, actor.id)
        return await self.members.get_membership(organization_id, target_user_id, with_user=True)
