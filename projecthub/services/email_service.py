"""
ProjectHub
Email Service.

Sends invitation emails. When SMTP is not configured, emails are logged but
not sent (dev/test mode). Callers run ``send_invitation`` as a post-commit
effect, so a delivery failure never affects the invitation row.

Configuration (app config):
    MAIL_SERVER     SMTP host (default: None → log-only mode)
    MAIL_PORT       SMTP port (default: 587)
    MAIL_USE_TLS    Use TLS (default: true)
    MAIL_USERNAME   SMTP username
    MAIL_PASSWORD   SMTP password
    MAIL_DEFAULT_SENDER  Default from address
    APP_URL         Base URL for invitation links
"""

from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


_INVITATION_SUBJECT = "{inviter_name} invited you to join {project_name}"
_INVITATION_HTML = """
<div style="font-family: 'Inter', Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background: #14b8a6; color: white; padding: 16px 24px; border-radius: 8px 8px 0 0;">
        <h2 style="margin: 0; font-size: 18px;">You're invited to collaborate</h2>
    </div>
    <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
        <p style="color: #334155;"><strong>{inviter_name}</strong> has invited you to join
           <strong>{project_name}</strong> as <strong>{role}</strong>.</p>
        <p style="margin: 24px 0;">
            <a href="{invite_url}" style="background: #14b8a6; color: white; padding: 10px 20px;
               border-radius: 6px; text-decoration: none;">Accept invitation</a>
        </p>
        <p style="color: #94a3b8; font-size: 12px;">This invitation expires in 7 days.</p>
    </div>
</div>
"""


class EmailService:
    """Email sending service. Log-only when MAIL_SERVER is unset."""

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def invitation_url(token: str) -> str:
        base = current_app.config.get("APP_URL", "").rstrip("/")
        return f"{base}/invite/{token}"

    @classmethod
    def send(cls, *, to_email: str, to_name: str | None = None,
             subject: str, html_body: str) -> bool:
        """
        Send an email. Returns True when handed to SMTP (or logged in dev mode).

        SMTP errors propagate; the effect queue logs them.
        """
        if not cls.is_configured():
            logger.info("Email (dev mode): to=%s subject='%s'", to_email, subject)
            return True

        cls._send_smtp(to_email=to_email, to_name=to_name,
                       subject=subject, html_body=html_body)
        logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        return True

    @classmethod
    def send_invitation(cls, *, to_email: str, inviter_name: str, project_name: str,
                        role: str, token: str) -> bool:
        context = {
            "inviter_name": html.escape(inviter_name),
            "project_name": html.escape(project_name),
            "role": html.escape(role),
            "invite_url": html.escape(cls.invitation_url(token), quote=True),
        }
        return cls.send(
            to_email=to_email,
            subject=_INVITATION_SUBJECT.format(inviter_name=inviter_name, project_name=project_name),
            html_body=_INVITATION_HTML.format(**context),
        )

    @staticmethod
    def _send_smtp(*, to_email: str, to_name: str | None,
                   subject: str, html_body: str) -> None:
        """Actually send via SMTP."""
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 587)
        use_tls = cfg.get("MAIL_USE_TLS", True)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")
        sender = cfg.get("MAIL_DEFAULT_SENDER", f"noreply@{server}")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = f"{to_name} <{to_email}>" if to_name else to_email
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(server, port, timeout=30) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(msg)
