from __future__ import annotations

import os
import tempfile
import uuid
from datetime import datetime
from typing import Optional

# Settings are read at import time; point them at SQLite before breeqa loads.
os.environ.setdefault(
    "DATABASE_URL_ASYNC",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "breeqa-tests.db"),
)
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from breeqa.core.roles import MemberStatus, Role
from breeqa.core.security import create_access_token
from breeqa.db.session import get_db, init_db
from breeqa.models.organization import Organization
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User
from breeqa.services.contracts import NotificationResult
from breeqa.services.notifications import get_notification_service


# ---------------------------------------------------------
# Fakes
# ---------------------------------------------------------
class RecordingNotifier:
    """
    Stands in for the email provider. Records every send; can be told to
    report failure or to blow up.
    """

    def __init__(self, *, result: Optional[NotificationResult] = None, error: Optional[Exception] = None):
        self.sent: list[dict] = []
        self.result = result or NotificationResult(success=True)
        self.error = error

    async def send(self, invitation, *, organization_name, inviter_name=None):
        self.sent.append(
            {
                "email": invitation.email,
                "token": invitation.token,
                "organization_name": organization_name,
                "inviter_name": inviter_name,
            }
        )
        if self.error is not None:
            raise self.error
        return self.result


# ---------------------------------------------------------
# Engine + schema lifecycle (fresh SQLite file per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'breeqa.db'}",
        future=True,
        echo=False,
        poolclass=NullPool,
    )
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------
# DB session for setup / service calls / assertions
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


# ---------------------------------------------------------
# FastAPI app + dependency overrides
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker, notifier):
    from breeqa.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    fastapi_app.dependency_overrides[get_notification_service] = lambda: notifier
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Builders
# ---------------------------------------------------------
async def create_user(db, email: str, full_name: Optional[str] = None) -> User:
    user = User(email=User.normalize_email(email), full_name=full_name)
    db.add(user)
    await db.flush()
    return user


async def create_organization(db, creator: Optional[User] = None, slug: Optional[str] = None) -> Organization:
    slug = slug or f"org-{uuid.uuid4().hex[:8]}"
    org = Organization(
        name=f"Org {slug}",
        slug=slug,
        created_by=creator.id if creator is not None else None,
    )
    db.add(org)
    await db.flush()
    return org


async def add_member(
    db,
    organization: Organization,
    user: User,
    role: Role,
    status: MemberStatus = MemberStatus.ACTIVE,
    joined_at: Optional[datetime] = None,
) -> OrganizationMember:
    m = OrganizationMember(
        organization_id=organization.id,
        user_id=user.id,
        role=role,
        status=status,
    )
    if joined_at is not None:
        m.joined_at = joined_at
    db.add(m)
    await db.flush()
    return m


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def team(db):
    """
    One organization with one member per role, committed.
    """
    org = await create_organization(db, slug="acme")
    people = {}
    for role in Role:
        user = await create_user(db, f"{role.value}@acme.test", full_name=f"{role.value.title()} Person")
        await add_member(db, org, user, role)
        people[role] = user
    await db.commit()
    return org, people
