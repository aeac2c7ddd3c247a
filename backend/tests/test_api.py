# tests/test_api.py
from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from breeqa.core.roles import InvitationStatus, MemberStatus, Role
from breeqa.core.security import create_access_token
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.models.organization_member import OrganizationMember
from breeqa.models.user import User

from conftest import auth_headers


def new_identity(email: str) -> dict:
    """Token for an auth-provider user we have never seen locally."""
    return {"Authorization": f"Bearer {create_access_token(str(uuid.uuid4()), email=email)}"}


# ---------------------------------------------------------
# Envelope + auth
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_permission_catalog_is_public(client):
    r = await client.get("/api/v1/permissions")

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["error"] is None
    data = body["data"]
    assert data["roles"] == ["admin", "manager", "developer", "designer", "qa", "viewer"]
    assert data["ranks"]["admin"] == 5
    assert data["matrix"]["users:manage"] == {
        "admin": True,
        "manager": False,
        "developer": False,
        "designer": False,
        "qa": False,
        "viewer": False,
    }
    assert {"key": "users:suspend", "resource": "users", "action": "suspend", "roles": ["admin", "manager"]} in data[
        "rules"
    ]


@pytest.mark.asyncio
async def test_missing_token_is_unauthenticated(client):
    r = await client.get("/api/v1/organizations")

    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "data": None,
        "error": "Not authenticated",
        "code": "unauthenticated",
        "detail": None,
    }


@pytest.mark.asyncio
async def test_garbage_token_is_unauthenticated(client):
    r = await client.get("/api/v1/organizations", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_first_request_provisions_user(client, sessionmaker):
    r = await client.get("/api/v1/organizations", headers=new_identity("Fresh@Example.com"))

    assert r.status_code == 200
    assert r.json()["data"] == []
    async with sessionmaker() as s:
        user = (await s.execute(select(User).where(User.email == "fresh@example.com"))).scalar_one_or_none()
        assert user is not None


# ---------------------------------------------------------
# Organizations
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_create_organization_makes_caller_admin(client):
    headers = new_identity("founder@example.com")

    r = await client.post(
        "/api/v1/organizations",
        json={"name": "Rocket Labs", "slug": "Rocket Labs", "description": "Launch things"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    org = r.json()["data"]
    assert org["slug"] == "rocket-labs"

    r = await client.get(f"/api/v1/organizations/{org['id']}/access", headers=headers)
    access = r.json()["data"]
    assert access["role"] == "admin"
    assert "users:manage" in access["permissions"]

    r = await client.get("/api/v1/organizations", headers=headers)
    mine = r.json()["data"]
    assert [(m["organization"]["slug"], m["role"]) for m in mine] == [("rocket-labs", "admin")]


@pytest.mark.asyncio
async def test_duplicate_slug_conflicts(client):
    headers = new_identity("founder@example.com")
    payload = {"name": "Same", "slug": "same-slug"}

    assert (await client.post("/api/v1/organizations", json=payload, headers=headers)).status_code == 201
    r = await client.post("/api/v1/organizations", json=payload, headers=headers)

    assert r.status_code == 409
    assert r.json()["code"] == "duplicate_slug"


@pytest.mark.asyncio
async def test_bad_slug_is_a_validation_error(client):
    r = await client.post(
        "/api/v1/organizations",
        json={"name": "Nope", "slug": "!!!"},
        headers=new_identity("founder@example.com"),
    )

    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"


# ---------------------------------------------------------
# Invitation flow over HTTP
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_invite_view_accept_flow(client, team, notifier, sessionmaker):
    org, people = team
    admin_headers = auth_headers(people[Role.ADMIN])

    r = await client.post(
        f"/api/v1/organizations/{org.id}/invites",
        json={"email": "Newbie@Example.com", "role": "developer"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    invite = r.json()["data"]
    assert invite["status"] == "pending"
    assert invite["email"] == "newbie@example.com"
    token = invite["token"]
    assert notifier.sent[0]["token"] == token

    # Public landing page, no auth
    r = await client.get(f"/api/v1/invitations/{token}")
    assert r.status_code == 200
    preview = r.json()["data"]
    assert preview["organization_name"] == org.name
    assert preview["inviter_name"] == "Admin Person"
    assert preview["role"] == "developer"
    assert "token" not in preview

    newbie = new_identity("newbie@example.com")
    r = await client.get("/api/v1/invitations/mine", headers=newbie)
    assert [i["id"] for i in r.json()["data"]] == [invite["id"]]

    r = await client.post("/api/v1/invitations/accept", json={"token": token}, headers=newbie)
    assert r.status_code == 200, r.text
    member = r.json()["data"]
    assert member["role"] == "developer"
    assert member["status"] == "active"
    assert member["email"] == "newbie@example.com"

    r = await client.get(f"/api/v1/organizations/{org.id}/members", headers=newbie)
    assert "newbie@example.com" in {m["email"] for m in r.json()["data"]}

    async with sessionmaker() as s:
        stored = await s.get(OrganizationInvitation, uuid.UUID(invite["id"]))
        assert stored.status == InvitationStatus.ACCEPTED

    # token is single-use
    r = await client.post("/api/v1/invitations/accept", json={"token": token}, headers=newbie)
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_or_expired_invitation"


@pytest.mark.asyncio
async def test_viewer_invite_is_forbidden(client, team):
    org, people = team

    r = await client.post(
        f"/api/v1/organizations/{org.id}/invites",
        json={"email": "x@example.com", "role": "viewer"},
        headers=auth_headers(people[Role.VIEWER]),
    )

    assert r.status_code == 403
    body = r.json()
    assert body["code"] == "unauthorized"
    assert body["detail"] == {"required": "users:invite", "role": "viewer"}


@pytest.mark.asyncio
async def test_duplicate_invite_conflicts(client, team):
    org, people = team
    headers = auth_headers(people[Role.MANAGER])
    payload = {"email": "dup@example.com", "role": "qa"}

    assert (await client.post(f"/api/v1/organizations/{org.id}/invites", json=payload, headers=headers)).status_code == 201
    r = await client.post(f"/api/v1/organizations/{org.id}/invites", json=payload, headers=headers)

    assert r.status_code == 409
    assert r.json()["code"] == "duplicate_invitation"


@pytest.mark.asyncio
async def test_unknown_role_rejected(client, team):
    org, people = team
    r = await client.post(
        f"/api/v1/organizations/{org.id}/invites",
        json={"email": "x@example.com", "role": "owner"},
        headers=auth_headers(people[Role.ADMIN]),
    )
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_unknown_token_is_invalid(client):
    r = await client.get("/api/v1/invitations/does-not-exist")
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_or_expired_invitation"


@pytest.mark.asyncio
async def test_list_and_revoke_invites(client, team):
    org, people = team
    headers = auth_headers(people[Role.ADMIN])
    created = (
        await client.post(
            f"/api/v1/organizations/{org.id}/invites",
            json={"email": "maybe@example.com", "role": "qa"},
            headers=headers,
        )
    ).json()["data"]

    r = await client.get(f"/api/v1/organizations/{org.id}/invites", headers=headers)
    assert [i["id"] for i in r.json()["data"]] == [created["id"]]

    r = await client.delete(f"/api/v1/organizations/{org.id}/invites/{created['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "cancelled"

    r = await client.get(f"/api/v1/organizations/{org.id}/invites", headers=headers)
    assert r.json()["data"] == []

    r = await client.delete(f"/api/v1/organizations/{org.id}/invites/{uuid.uuid4()}", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


# ---------------------------------------------------------
# Members
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_change_role_and_suspend(client, team, sessionmaker):
    org, people = team
    admin_headers = auth_headers(people[Role.ADMIN])
    designer_id = people[Role.DESIGNER].id

    r = await client.patch(
        f"/api/v1/organizations/{org.id}/members/{designer_id}",
        json={"role": "qa"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["role"] == "qa"

    r = await client.delete(f"/api/v1/organizations/{org.id}/members/{designer_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "suspended"

    async with sessionmaker() as s:
        row = (
            await s.execute(
                select(OrganizationMember).where(
                    OrganizationMember.organization_id == org.id,
                    OrganizationMember.user_id == designer_id,
                )
            )
        ).scalar_one()
        assert row.status == MemberStatus.SUSPENDED

    r = await client.get(f"/api/v1/organizations/{org.id}/members", headers=auth_headers(people[Role.DESIGNER]))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_manager_cannot_suspend_admin_over_http(client, team):
    org, people = team

    r = await client.delete(
        f"/api/v1/organizations/{org.id}/members/{people[Role.ADMIN].id}",
        headers=auth_headers(people[Role.MANAGER]),
    )

    assert r.status_code == 403
    assert r.json()["detail"] == {"role": "manager", "target_role": "admin"}


@pytest.mark.asyncio
async def test_changed_sign_in_email_can_accept(client, db, team, sessionmaker):
    org, people = team
    mover = User(email="old@example.com")
    db.add(mover)
    await db.commit()

    r = await client.post(
        f"/api/v1/organizations/{org.id}/invites",
        json={"email": "new@example.com", "role": "qa"},
        headers=auth_headers(people[Role.ADMIN]),
    )
    assert r.status_code == 201, r.text
    token = r.json()["data"]["token"]

    # same subject, the provider now reports a different address
    headers = {"Authorization": f"Bearer {create_access_token(str(mover.id), email='New@Example.com')}"}

    r = await client.get("/api/v1/invitations/mine", headers=headers)
    assert [i["email"] for i in r.json()["data"]] == ["new@example.com"]

    r = await client.post("/api/v1/invitations/accept", json={"token": token}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["email"] == "new@example.com"
    assert r.json()["data"]["user_id"] == str(mover.id)

    async with sessionmaker() as s:
        stored = await s.get(User, mover.id)
        assert stored.email == "new@example.com"
