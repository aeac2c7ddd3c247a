from __future__ import annotations

import functools
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from breeqa.core.errors import CollaboratorFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


def store_call(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Wrap a store coroutine so backing-store failures surface as CollaboratorFailure.

    IntegrityError is left alone: callers translate uniqueness violations into
    domain errors (DuplicateInvitation, AlreadyMember, ...).
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Store call %s failed", fn.__qualname__)
            raise CollaboratorFailure(f"Database error: {exc.__class__.__name__}", detail=str(exc)) from exc

    return wrapper
