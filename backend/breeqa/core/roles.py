# breeqa/core/roles.py

import enum
from typing import Mapping


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    DEVELOPER = "developer"
    DESIGNER = "designer"
    QA = "qa"
    VIEWER = "viewer"


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# developer / designer / qa share a rank: none of them outranks the others.
ROLE_RANK: Mapping[Role, int] = {
    Role.ADMIN: 5,
    Role.MANAGER: 4,
    Role.DEVELOPER: 3,
    Role.DESIGNER: 3,
    Role.QA: 3,
    Role.VIEWER: 1,
}

# Display order for matrices and role pickers
ROLE_ORDER = (
    Role.ADMIN,
    Role.MANAGER,
    Role.DEVELOPER,
    Role.DESIGNER,
    Role.QA,
    Role.VIEWER,
)


def parse_role(value: "Role | str | None") -> Role | None:
    """Lenient parse for values coming back from storage; unknown -> None."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").strip().lower())
    except ValueError:
        return None
