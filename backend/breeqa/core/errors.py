# breeqa/core/errors.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import status


class AccessError(Exception):
    """
    Base for every error a public operation can raise.
    Handlers render it as {"success": false, "data": null, "error": message, "code": code}.
    """

    code: str = "error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, *, detail: Any = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class Unauthenticated(AccessError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Unauthorized(AccessError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class InvalidOrExpiredInvitation(AccessError):
    code = "invalid_or_expired_invitation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired invitation"


class DuplicateInvitation(AccessError):
    code = "duplicate_invitation"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invitation already sent to this email"


class AlreadyMember(AccessError):
    code = "already_member"
    status_code = status.HTTP_409_CONFLICT
    default_message = "User is already a member of this organization"


class DuplicateSlug(AccessError):
    code = "duplicate_slug"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Organization slug already exists"


class NotFound(AccessError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class CollaboratorFailure(AccessError):
    code = "collaborator_failure"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Backing service call failed"


class InvalidRequest(AccessError):
    code = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"
