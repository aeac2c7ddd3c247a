from fastapi import APIRouter

from breeqa.auth.permissions import PERMISSIONS, permission_matrix
from breeqa.core.roles import ROLE_ORDER, ROLE_RANK
from breeqa.schemas.common import ApiResponse
from breeqa.schemas.permissions import PermissionCatalogOut, PermissionRuleOut

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=ApiResponse[PermissionCatalogOut])
async def get_permission_catalog():
    """
    The static role/permission table, for the UI to hide actions the
    server would refuse anyway.
    """
    rules = [
        PermissionRuleOut(
            key=key,
            resource=rule.resource,
            action=rule.action,
            roles=[r for r in ROLE_ORDER if r in rule.allowed_roles],
        )
        for key, rule in PERMISSIONS.items()
    ]
    catalog = PermissionCatalogOut(
        roles=list(ROLE_ORDER),
        ranks={r.value: ROLE_RANK[r] for r in ROLE_ORDER},
        rules=rules,
        matrix=permission_matrix(),
    )
    return ApiResponse(data=catalog)
