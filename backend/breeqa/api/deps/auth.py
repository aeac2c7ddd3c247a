from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.core.errors import Unauthenticated
from breeqa.core.security import bearer_scheme, decode_access_token
from breeqa.crud.user import get_or_create_user
from breeqa.db.session import get_db
from breeqa.models.user import User


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency for protected endpoints. The token comes from the auth
    provider; the local profile is provisioned from its claims on first use.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    identity = decode_access_token(credentials.credentials)

    try:
        user_uuid = uuid.UUID(identity.user_id)
    except ValueError:
        raise Unauthenticated("Invalid token subject")

    user = await get_or_create_user(db, user_uuid, identity.email)
    if user is None:
        raise Unauthenticated("User not found")
    return user
