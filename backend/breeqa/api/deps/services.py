from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from breeqa.db.session import get_db
from breeqa.services.invitations import InvitationService
from breeqa.services.members import MemberService
from breeqa.services.notifications import ResendNotificationService, get_notification_service
from breeqa.services.organizations import OrganizationService


def get_invitation_service(
    db: AsyncSession = Depends(get_db),
    notifier: ResendNotificationService = Depends(get_notification_service),
) -> InvitationService:
    return InvitationService(db, notifier=notifier)


def get_member_service(db: AsyncSession = Depends(get_db)) -> MemberService:
    return MemberService(db)


def get_organization_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    return OrganizationService(db)
