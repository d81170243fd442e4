import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.database.models import User
from core.database.operations import add_device_token, get_db, list_device_tokens, remove_device_token
from core.notifications.push import PushDeliveryError, send_push_notifications

from ..deps import error_response, get_current_user
from ..models import DeviceTokenRequest, MessageResponse, SendNotificationRequest

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger("api.notifications")


@router.post("/register-device", response_model=MessageResponse)
def register_device(request: DeviceTokenRequest,
                    user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    """Register an Expo push token for the current user. Registering twice is a no-op."""
    if not request.token or not request.token.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Device token is required")

    add_device_token(db, user, request.token)
    return MessageResponse(success=True, message="Device token registered successfully")


@router.delete("/unregister-device", response_model=MessageResponse)
def unregister_device(request: DeviceTokenRequest,
                      user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    if not request.token or not request.token.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Device token is required")

    remove_device_token(db, user, request.token)
    return MessageResponse(success=True, message="Device token unregistered successfully")


@router.post("/send", response_model=MessageResponse)
def send(request: SendNotificationRequest,
         user: User = Depends(get_current_user),
         db: Session = Depends(get_db)):
    """Push a notification to every device the current user registered."""
    if not request.title or not request.body:
        return error_response(status.HTTP_400_BAD_REQUEST, "Title and body are required")

    tokens = list_device_tokens(db, user)
    if not tokens:
        return error_response(status.HTTP_400_BAD_REQUEST, "No device tokens registered for this user")

    try:
        send_push_notifications(tokens, request.title, request.body, request.data)
    except PushDeliveryError as e:
        logger.error("Send notification error for user %s: %s", user.id, e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error sending notification")

    return MessageResponse(success=True, message="Notification sent successfully")
