# breeqa/models/organization_member.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from breeqa.core.clock import utcnow
from breeqa.core.roles import MemberStatus, Role
from breeqa.db.base import Base
from breeqa.models.organization import Organization
from breeqa.models.types import member_status_column, role_column
from breeqa.models.user import User


class OrganizationMember(Base):
    __tablename__ = "organization_members"
    __table_args__ = (
        # One row per (org, user): also caps active memberships at one.
        UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),
        Index("ix_organization_members_org_status", "organization_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    role: Mapped[Role] = mapped_column(role_column(), nullable=False, default=Role.VIEWER)

    # active | pending | suspended (never hard-deleted)
    status: Mapped[MemberStatus] = mapped_column(member_status_column(), nullable=False, default=MemberStatus.ACTIVE)

    invited_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    user: Mapped[User] = relationship(User, foreign_keys=[user_id], lazy="raise")
    organization: Mapped[Organization] = relationship(Organization, lazy="raise")

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE
