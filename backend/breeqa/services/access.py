from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.auth.permissions import has_permission
from breeqa.core.errors import Unauthenticated, Unauthorized
from breeqa.core.roles import Role
from breeqa.models.user import User
from breeqa.services.contracts import MembershipResolver


def require_actor(actor: Optional[User]) -> User:
    if actor is None:
        raise Unauthenticated()
    return actor


async def authorize(
    members: MembershipResolver,
    actor: Optional[User],
    organization_id: uuid.UUID,
    key: str,
) -> Role:
    """
    Resolve the actor's active role in the organization (fresh, every call) and
    check it against the permission table. Returns the role on success.
    """
    user = require_actor(actor)
    role = await members.resolve_role(user.id, organization_id)
    if role is None:
        raise Unauthorized("You are not a member of this organization")
    if not has_permission(role, key):
        raise Unauthorized(
            "You don't have permission to perform this action",
            detail={"required": key, "role": role.value},
        )
    return role


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit everything written inside the block as one transaction, or nothing.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
