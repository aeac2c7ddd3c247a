from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.core.errors import DuplicateSlug
from breeqa.crud.errors import store_call
from breeqa.models.organization import Organization


@store_call
async def get_organization(db: AsyncSession, organization_id: uuid.UUID) -> Optional[Organization]:
    return await db.get(Organization, organization_id)


@store_call
async def slug_exists(db: AsyncSession, slug: str) -> bool:
    stmt = select(Organization.id).where(Organization.slug == slug).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none() is not None


@store_call
async def insert_organization(
    db: AsyncSession,
    *,
    name: str,
    slug: str,
    description: Optional[str],
    created_by: uuid.UUID,
) -> Organization:
    org = Organization(name=name, slug=slug, description=description, created_by=created_by)
    db.add(org)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateSlug() from exc
    return org

