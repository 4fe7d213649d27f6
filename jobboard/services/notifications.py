"""Outbound notification sink for password-reset messages.

Messages are posted to a configured webhook (a mail relay or chat hook).
Delivery is attempted once with a short timeout; failures are raised to the
caller as NotificationError and never retried here.
"""

import logging
from datetime import UTC, datetime

import httpx

from jobboard.core.config import settings
from jobboard.services.errors import NotificationError

logger = logging.getLogger(__name__)


async def send_password_reset(to: str, reset_url: str) -> None:
    """Deliver a password reset link to ``to``.

    In debug mode with no webhook configured the link is logged instead,
    so the flow can be exercised locally.
    """
    subject = f"{settings.app_name} - Reset your password"
    text = (
        "Use the link below to reset your password. "
        f"It expires in {settings.password_reset_expire_minutes} minutes.\n\n"
        f"{reset_url}\n\n"
        "If you did not request this, you can ignore this message."
    )
    await send_notification("password_reset", to, subject, text, {"reset_url": reset_url})


async def send_notification(
    kind: str,
    to: str,
    subject: str,
    text: str,
    details: dict | None = None,
) -> None:
    """Post a notification to the configured webhook.

    Raises:
        NotificationError: no sink is configured outside debug mode, the
            request failed, or the sink answered with an error status.
    """
    webhook_url = settings.notification_webhook_url
    if not webhook_url:
        if settings.debug:
            logger.info("No notification sink configured; %s for %s: %s", kind, to, details)
            return
        raise NotificationError("Notification sink is not configured")

    payload = _build_payload(kind, to, subject, text, details)

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            response = await client.post(webhook_url, json=payload)
    except httpx.HTTPError as e:
        logger.warning("Notification delivery failed: %s", e)
        raise NotificationError("Notification delivery failed") from e

    if response.status_code >= 400:
        logger.warning("Notification delivery failed: HTTP %d", response.status_code)
        raise NotificationError(f"Notification sink returned HTTP {response.status_code}")


def _build_payload(
    kind: str,
    to: str,
    subject: str,
    text: str,
    details: dict | None,
) -> dict:
    return {
        "type": kind,
        "to": to,
        "subject": subject,
        "text": text,
        "details": details or {},
        "timestamp": datetime.now(UTC).isoformat(),
        "source": settings.app_name,
    }
