from sqlalchemy import Enum as SQLEnum

from breeqa.core.roles import InvitationStatus, MemberStatus, Role


def _values(enum_cls):
    return [e.value for e in enum_cls]


def _enum_column(enum_cls, name: str, length: int) -> SQLEnum:
    # Stored as VARCHAR holding the lowercase value ("admin", "active", ...)
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=length,
        values_callable=_values,
        validate_strings=True,
    )


def role_column() -> SQLEnum:
    return _enum_column(Role, "member_role", 30)


def member_status_column() -> SQLEnum:
    return _enum_column(MemberStatus, "member_status", 20)


def invitation_status_column() -> SQLEnum:
    return _enum_column(InvitationStatus, "invitation_status", 20)
