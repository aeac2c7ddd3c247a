from __future__ import annotations

import html
import logging
from datetime import datetime
from typing import Optional

import httpx

from breeqa.core.clock import as_utc
from breeqa.core.config import Settings, settings as default_settings
from breeqa.models.organization_invitation import OrganizationInvitation
from breeqa.services.contracts import NotificationResult

logger = logging.getLogger(__name__)


def invitation_url(token: str, site_url: str) -> str:
    return f"{site_url.rstrip('/')}/invite/{token}"


def render_invitation_email(
    *,
    organization_name: str,
    inviter_name: str,
    role: str,
    url: str,
    expires_at: datetime,
) -> str:
    org = html.escape(organization_name)
    inviter = html.escape(inviter_name)
    expires = as_utc(expires_at).strftime("%B %d, %Y")
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h1>Join {org}</h1>"
        f"<p>{inviter} has invited you to join <strong>{org}</strong> as <strong>{html.escape(role)}</strong>.</p>"
        f'<p><a href="{html.escape(url, quote=True)}">Accept invitation</a></p>'
        f"<p>This invitation expires on {expires}.</p>"
        "</div>"
    )


class ResendNotificationService:
    """
    Sends invitation emails through Resend's HTTP API.

    Never raises for delivery problems: every outcome comes back as a
    NotificationResult so invitation creation can log and move on.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or default_settings
        self._client = client

    async def send(
        self,
        invitation: OrganizationInvitation,
        *,
        organization_name: str,
        inviter_name: Optional[str] = None,
    ) -> NotificationResult:
        api_key = self.settings.RESEND_API_KEY
        if not api_key:
            logger.warning("RESEND_API_KEY is not configured. Skipping invitation email to %s.", invitation.email)
            return NotificationResult(success=False, error="Email provider is not configured")

        role = getattr(invitation.role, "value", invitation.role)
        payload = {
            "from": f"{organization_name or self.settings.EMAIL_FROM_NAME} <noreply@{self.settings.EMAIL_FROM_DOMAIN}>",
            "to": [invitation.email],
            "subject": f"You're invited to join {organization_name or 'our organization'}",
            "html": render_invitation_email(
                organization_name=organization_name or "Unknown Organization",
                inviter_name=inviter_name or "Someone",
                role=str(role),
                url=invitation_url(invitation.token, self.settings.SITE_URL),
                expires_at=invitation.expires_at,
            ),
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                response = await self._client.post(self.settings.EMAIL_API_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.settings.EMAIL_TIMEOUT_SECONDS) as client:
                    response = await client.post(self.settings.EMAIL_API_URL, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Invitation email to %s rejected: %s %s",
                invitation.email,
                exc.response.status_code,
                exc.response.text,
            )
            return NotificationResult(success=False, error=f"Email provider returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("Invitation email to %s failed: %s", invitation.email, exc)
            return NotificationResult(success=False, error=str(exc) or exc.__class__.__name__)

        logger.info("Invitation email sent to %s", invitation.email)
        return NotificationResult(success=True)


def get_notification_service() -> ResendNotificationService:
    """FastAPI dependency; overridden in tests."""
    return ResendNotificationService()
