from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from breeqa.core.roles import Role
from breeqa.models.organization import Organization


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    slug: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return Organization.normalize_slug(v)


class OrganizationOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MyOrganizationOut(BaseModel):
    organization: OrganizationOut
    role: Role
    joined_at: datetime


class AccessOut(BaseModel):
    organization_id: UUID
    role: Optional[Role] = None
    permissions: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}
