import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from breeqa.core.clock import as_utc, utcnow
from breeqa.core.roles import InvitationStatus, Role
from breeqa.db.base import Base
from breeqa.models.organization import Organization
from breeqa.models.types import invitation_status_column, role_column
from breeqa.models.user import User

PENDING_INVITE_INDEX = "uq_organization_invitations_pending_org_email"


class OrganizationInvitation(Base):
    __tablename__ = "organization_invitations"
    __table_args__ = (
        UniqueConstraint("token", name="uq_organization_invitations_token"),
        # At most one pending invitation per (org, email); a concurrent second
        # writer fails here instead of double-inviting.
        Index(
            PENDING_INVITE_INDEX,
            "organization_id",
            "email",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_organization_invitations_org_created_at", "organization_id", "created_at"),
        Index("ix_organization_invitations_email_status", "email", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[Role] = mapped_column(role_column(), nullable=False, default=Role.VIEWER)

    token: Mapped[str] = mapped_column(String(200), nullable=False)

    invited_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[InvitationStatus] = mapped_column(
        invitation_status_column(), nullable=False, default=InvitationStatus.PENDING
    )

    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    organization: Mapped[Organization] = relationship(Organization, lazy="raise")
    inviter: Mapped[Optional[User]] = relationship(User, foreign_keys=[invited_by], lazy="raise")

    def is_expired(self, now: datetime) -> bool:
        # Expiry is inclusive: at exactly expires_at the invitation is dead.
        return as_utc(now) >= as_utc(self.expires_at)

    def effective_status(self, now: datetime) -> InvitationStatus:
        """
        Stored status with lazy expiry applied: a pending invitation past
        expires_at reads as expired even if nobody has written that yet.
        """
        if self.status == InvitationStatus.PENDING and self.is_expired(now):
            return InvitationStatus.EXPIRED
        return self.status

    def is_redeemable(self, now: datetime) -> bool:
        return self.effective_status(now) == InvitationStatus.PENDING
