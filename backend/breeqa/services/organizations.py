from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.core.errors import DuplicateSlug, InvalidRequest
from breeqa.core.roles import Role
from breeqa.crud.organization import insert_organization, slug_exists
from breeqa.crud.organization_member import MembershipStore
from breeqa.models.organization import Organization
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User
from breeqa.services.access import require_actor, unit_of_work

logger = logging.getLogger(__name__)


class OrganizationService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.members = MembershipStore(db)

    async def create(
        self,
        actor: Optional[User],
        *,
        name: str,
        slug: str,
        description: Optional[str] = None,
    ) -> Organization:
        """
        Create an organization; the creator becomes its first admin in the
        same transaction.
        """
        user = require_actor(actor)
        try:
            slug = Organization.normalize_slug(slug)
        except ValueError as exc:
            raise InvalidRequest(str(exc)) from exc

        if await slug_exists(self.db, slug):
            raise DuplicateSlug()

        async with unit_of_work(self.db):
            organization = await insert_organization(
                self.db,
                name=name.strip(),
                slug=slug,
                description=description,
                created_by=user.id,
            )
            await self.members.add_member(organization.id, user.id, Role.ADMIN)

        logger.info("Organization %s (%s) created by %s", organization.id, slug, user.id)
        return organization

    async def list_mine(self, actor: Optional[User]) -> List[OrganizationMember]:
        user = require_actor(actor)
        return await self.members.list_for_user(user.id)
