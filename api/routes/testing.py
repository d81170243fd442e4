"""Diagnostics routes. Only mounted outside production."""

from fastapi import APIRouter, status

from core.notifications.mailer import send_email

from ..deps import error_response
from ..models import MessageResponse, SendTestEmailRequest

router = APIRouter(prefix="/test", tags=["Test"])


@router.post("/email", response_model=MessageResponse)
def test_email(request: SendTestEmailRequest):
    """Send an email through the configured SMTP server."""
    if not request.to or not request.subject or not request.text:
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required fields: to, subject, text")

    if not send_email(request.to, request.subject, request.text, request.html):
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send test email")

    return MessageResponse(success=True, message="Test email sent successfully")
