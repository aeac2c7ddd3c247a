from typing import Dict, List

from pydantic import BaseModel

from breeqa.core.roles import Role


class PermissionRuleOut(BaseModel):
    key: str
    resource: str
    action: str
    roles: List[Role]


class PermissionCatalogOut(BaseModel):
    roles: List[Role]
    ranks: Dict[str, int]
    rules: List[PermissionRuleOut]
    matrix: Dict[str, Dict[str, bool]]
