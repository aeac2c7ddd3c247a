# Import models here so Alembic and metadata.create_all() see every table.
from breeqa.models.user import User  # noqa: F401

# Organizations, memberships, invitations
from breeqa.models.organization import Organization  # noqa: F401
from breeqa.models.organization_member import OrganizationMember  # noqa: F401
from breeqa.models.organization_invitation import OrganizationInvitation  # noqa: F401
