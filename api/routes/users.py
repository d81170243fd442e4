from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.database.models import User
from core.database.operations import get_db, update_profile

from ..deps import error_response, get_current_user
from ..models import Profile, ProfileResponse, UpdateProfileRequest

router = APIRouter(prefix="/users", tags=["Users"])


def _profile(user: User) -> Profile:
    return Profile(
        id=user.id,
        name=user.name,
        email=user.email,
        profile_picture=user.profile_picture or "",
        email_updates=user.email_updates,
        auth_provider=user.auth_provider,
        created_at=user.created_at,
    )


@router.get("/profile", response_model=ProfileResponse, response_model_exclude_none=True)
def get_profile(user: User = Depends(get_current_user)):
    return ProfileResponse(success=True, data=_profile(user))


@router.put("/profile", response_model=ProfileResponse)
def put_profile(request: UpdateProfileRequest,
                user: User = Depends(get_current_user),
                db: Session = Depends(get_db)):
    """Update the display name and/or the email-updates preference."""
    if request.name is not None:
        if not request.name.strip():
            return error_response(status.HTTP_400_BAD_REQUEST, "Valid name is required")
        if len(request.name.strip()) > 50:
            return error_response(status.HTTP_400_BAD_REQUEST, "Name cannot be more than 50 characters")

    user = update_profile(db, user, name=request.name, email_updates=request.email_updates)
    return ProfileResponse(success=True, message="Profile updated successfully", data=_profile(user))
