"""Outgoing email over SMTP (SendGrid by default)."""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from config.settings import get_settings

logger = logging.getLogger("notifications.email")


def build_message(to: str, subject: str, text: str, html: Optional[str] = None,
                  from_addr: Optional[str] = None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = from_addr or get_settings().EMAIL_DEFAULT_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text)
    if html:
        message.add_alternative(html, subtype="html")
    return message


def send_email(to: str, subject: str, text: str, html: Optional[str] = None,
               from_addr: Optional[str] = None) -> bool:
    """Send an email and report whether it went out.

    Failures are logged, not raised: callers decide what a lost email means.
    """
    settings = get_settings()
    message = build_message(to, subject, text, html, from_addr)
    try:
        if settings.SMTP_SECURE:
            smtp = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
        else:
            smtp = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
        with smtp:
            if not settings.SMTP_SECURE:
                smtp.starttls()
            if settings.SMTP_PASSWORD:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email to %s: %s", to, e)
        return False

    logger.info("Email sent to %s: %s", to, subject)
    return True


def reset_code_email(code: str, app_name: str, expire_minutes: int) -> dict:
    """Subject, text and HTML bodies for a password reset code."""
    return {
        "subject": "Password Reset Code",
        "text": f"Your {app_name} password reset code is: {code}. "
                f"This code will expire in {expire_minutes} minutes.",
        "html": (
            "<h1>Password Reset Code</h1>"
            "<p>You requested a password reset.</p>"
            "<p>Your verification code is:</p>"
            f'<h2 style="letter-spacing: 3px; font-size: 32px; text-align: center;">{code}</h2>'
            f"<p>This code will expire in {expire_minutes} minutes.</p>"
            "<p>If you didn't request this, please ignore this email.</p>"
        ),
    }


def reset_success_email() -> dict:
    return {
        "subject": "Password Reset Successful",
        "text": "Your password has been reset successfully.",
        "html": (
            "<h1>Password Reset Successful</h1>"
            "<p>Your password has been reset successfully.</p>"
            "<p>If you didn't make this change, please contact support immediately.</p>"
        ),
    }
