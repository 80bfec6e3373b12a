# Overview: Outbound transactional email through the Resend HTTP API.

import logging

import httpx
from flask import current_app

from ..errors import DependencyError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def _render_temp_password_html(full_name: str | None, temp_password: str) -> str:
    return (
        '<div style="font-family:Arial,sans-serif;line-height:1.5">'
        "<h2>CRM password reset</h2>"
        f"<p>Hello {full_name or 'there'},</p>"
        "<p>A temporary password has been generated for your account:</p>"
        f'<p style="font-size:18px"><b>{temp_password}</b></p>'
        "<p>Please sign in and change your password immediately.</p>"
        "</div>"
    )


def send_temporary_password(*, to: str, full_name: str | None, temp_password: str) -> None:
    """Raises DependencyError when mail is not configured or the API refuses."""
    api_key = (current_app.config.get("RESEND_API_KEY") or "").strip()
    sender = (current_app.config.get("CRM_FROM_EMAIL") or "").strip()
    if not api_key or not sender:
        raise DependencyError("Email service is not configured (RESEND_API_KEY / CRM_FROM_EMAIL)")

    try:
        resp = httpx.post(
            RESEND_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "from": sender,
                "to": to,
                "subject": "CRM temporary password",
                "html": _render_temp_password_html(full_name, temp_password),
            },
            timeout=current_app.config.get("HTTP_TIMEOUT_SECONDS", 30),
        )
    except httpx.HTTPError as exc:
        logger.error("Password reset email request failed: %s", exc)
        raise DependencyError("Failed to send reset email") from exc

    if not resp.is_success:
        logger.error("Password reset email rejected (%s): %s", resp.status_code, resp.text[:500])
        raise DependencyError(f"Failed to send reset email ({resp.status_code})")
