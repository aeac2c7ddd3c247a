from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.crud.errors import store_call
from breeqa.models.user import User

logger = logging.getLogger(__name__)


@store_call
async def get_or_create_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    email: Optional[str],
) -> Optional[User]:
    """
    Load the local profile for an auth-provider subject, provisioning it on
    first sight when the token carries an email. The provider owns the
    address: when the token's email differs from the stored one, the stored
    copy is updated so invitation matching follows the current sign-in email.

    Runs outside any service unit of work (auth dependency), so it commits
    its own writes.
    """
    normalized = User.normalize_email(email)
    user = await db.get(User, user_id)

    if user is None:
        if not normalized:
            return None
        user = User(id=user_id, email=normalized)
        db.add(user)
    elif normalized and user.email != normalized:
        logger.info("User %s email changed at the auth provider; updating local profile", user_id)
        user.email = normalized
    else:
        return user

    try:
        await db.commit()
    except IntegrityError:
        # email already bound to another subject, or a concurrent first request
        await db.rollback()
        logger.warning("Could not store email for user %s: address already in use", user_id)
        return await db.get(User, user_id)
    return user
