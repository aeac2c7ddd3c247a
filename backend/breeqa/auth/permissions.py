from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping

from breeqa.core.roles import ROLE_ORDER, ROLE_RANK, Role, parse_role

ALL_ROLES: FrozenSet[Role] = frozenset(Role)


@dataclass(frozen=True)
class PermissionRule:
    resource: str
    action: str
    allowed_roles: FrozenSet[Role]

    def __post_init__(self) -> None:
        if not self.allowed_roles:
            raise ValueError(f"Permission {self.resource}:{self.action} must allow at least one role")


@dataclass(frozen=True)
class Permission:
    # org:*
    ORG_MANAGE: str = "org:manage"
    ORG_SETTINGS: str = "org:settings"
    ORG_VIEW: str = "org:view"

    # users:*
    USERS_INVITE: str = "users:invite"
    USERS_MANAGE: str = "users:manage"
    USERS_SUSPEND: str = "users:suspend"
    USERS_VIEW: str = "users:view"

    # projects:*
    PROJECTS_CREATE: str = "projects:create"
    PROJECTS_MANAGE: str = "projects:manage"
    PROJECTS_VIEW: str = "projects:view"

    # issues:*
    ISSUES_CREATE: str = "issues:create"
    ISSUES_MANAGE: str = "issues:manage"
    ISSUES_VIEW: str = "issues:view"


PERM = Permission()

_ADMIN_ONLY = frozenset({Role.ADMIN})
_ADMIN_MANAGER = frozenset({Role.ADMIN, Role.MANAGER})
_CONTRIBUTORS = frozenset({Role.ADMIN, Role.MANAGER, Role.DEVELOPER, Role.DESIGNER, Role.QA})

PERMISSIONS: Mapping[str, PermissionRule] = {
    # Organization management
    PERM.ORG_MANAGE: PermissionRule("organization", "manage", _ADMIN_ONLY),
    PERM.ORG_SETTINGS: PermissionRule("organization", "settings", _ADMIN_MANAGER),
    PERM.ORG_VIEW: PermissionRule("organization", "view", ALL_ROLES),
    # User management
    PERM.USERS_INVITE: PermissionRule("users", "invite", _ADMIN_MANAGER),
    PERM.USERS_MANAGE: PermissionRule("users", "manage", _ADMIN_ONLY),
    PERM.USERS_SUSPEND: PermissionRule("users", "suspend", _ADMIN_MANAGER),
    PERM.USERS_VIEW: PermissionRule("users", "view", _ADMIN_MANAGER),
    # Project management
    PERM.PROJECTS_CREATE: PermissionRule("projects", "create", _ADMIN_MANAGER),
    PERM.PROJECTS_MANAGE: PermissionRule("projects", "manage", _ADMIN_MANAGER),
    PERM.PROJECTS_VIEW: PermissionRule("projects", "view", ALL_ROLES),
    # Issues & tasks
    PERM.ISSUES_CREATE: PermissionRule("issues", "create", _CONTRIBUTORS),
    PERM.ISSUES_MANAGE: PermissionRule("issues", "manage", _ADMIN_MANAGER),
    PERM.ISSUES_VIEW: PermissionRule("issues", "view", ALL_ROLES),
}


def has_permission(role: Role | str | None, key: str) -> bool:
    """
    Unknown keys and absent roles are denied (fail closed).
    """
    r = parse_role(role)
    if r is None:
        return False
    rule = PERMISSIONS.get(key)
    if rule is None:
        return False
    return r in rule.allowed_roles


def can_manage_role(acting: Role | str, target: Role | str) -> bool:
    """
    Strictly-greater rank only. Peers of equal rank (including oneself)
    can never manage each other.
    """
    a, t = parse_role(acting), parse_role(target)
    if a is None or t is None:
        return False
    return ROLE_RANK[a] > ROLE_RANK[t]


def can_grant_role(acting: Role | str, granted: Role | str) -> bool:
    """
    A role may hand out roles up to (and including) its own rank, never above.
    """
    a, g = parse_role(acting), parse_role(granted)
    if a is None or g is None:
        return False
    return ROLE_RANK[g] <= ROLE_RANK[a]


def permitted_keys(role: Role | str | None) -> List[str]:
    return sorted(key for key in PERMISSIONS if has_permission(role, key))


def permission_matrix() -> Dict[str, Dict[str, bool]]:
    return {
        key: {r.value: r in rule.allowed_roles for r in ROLE_ORDER}
        for key, rule in PERMISSIONS.items()
    }
