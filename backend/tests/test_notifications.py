# tests/test_notifications.py
from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from breeqa.core.config import Settings
from breeqa.core.roles import Role
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.services.notifications import (
    ResendNotificationService,
    invitation_url,
    render_invitation_email,
)


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL_ASYNC": "sqlite+aiosqlite://",
        "RESEND_API_KEY": "re_test_key",
        "SITE_URL": "https://app.example.com/",
        "EMAIL_FROM_DOMAIN": "mail.example.com",
    }
    values.update(overrides)
    return Settings(**values)


def make_invitation() -> OrganizationInvitation:
    return OrganizationInvitation(
        email="guest@example.com",
        role=Role.DESIGNER,
        token="tok_abc",
        expires_at=datetime(2031, 3, 9, 12, 0, tzinfo=timezone.utc),
    )


def test_invitation_url_has_single_slash():
    assert invitation_url("tok", "https://app.example.com/") == "https://app.example.com/invite/tok"


def test_email_body_escapes_names():
    body = render_invitation_email(
        organization_name="<Acme & Co>",
        inviter_name="Eve <script>",
        role="qa",
        url="https://app.example.com/invite/t",
        expires_at=datetime(2031, 3, 9),
    )
    assert "&lt;Acme &amp; Co&gt;" in body
    assert "<script>" not in body
    assert "March 09, 2031" in body


@pytest.mark.asyncio
async def test_send_posts_to_provider():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "email_1"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = ResendNotificationService(make_settings(), client=client)
        result = await service.send(make_invitation(), organization_name="Acme", inviter_name="Ada")

    assert result.success
    assert len(seen) == 1
    request = seen[0]
    assert str(request.url) == "https://api.resend.com/emails"
    assert request.headers["Authorization"] == "Bearer re_test_key"
    payload = json.loads(request.content)
    assert payload["to"] == ["guest@example.com"]
    assert payload["from"] == "Acme <noreply@mail.example.com>"
    assert "https://app.example.com/invite/tok_abc" in payload["html"]
    assert "designer" in payload["html"]


@pytest.mark.asyncio
async def test_provider_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "invalid from"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await ResendNotificationService(make_settings(), client=client).send(
            make_invitation(), organization_name="Acme"
        )

    assert not result.success
    assert "422" in result.error


@pytest.mark.asyncio
async def test_transport_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await ResendNotificationService(make_settings(), client=client).send(
            make_invitation(), organization_name="Acme"
        )

    assert not result.success
    assert result.error == "refused"


@pytest.mark.asyncio
async def test_missing_api_key_skips_send():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("provider must not be called")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await ResendNotificationService(make_settings(RESEND_API_KEY=None), client=client).send(
            make_invitation(), organization_name="Acme"
        )

    assert not result.success
    assert result.error == "Email provider is not configured"
