import logging

from fastapi import APIRouter, Depends, status
import requests
from sqlalchemy.orm import Session
import sqlalchemy.exc

from config.settings import get_settings
from core.auth.security import (
    PASSWORD_POLICY_MESSAGE,
    is_valid_email,
    is_valid_password,
)
from core.auth.social import SocialAuthError, verify_apple_token, verify_google_token
from core.database.models import User
from core.database.operations import (
    authenticate_user,
    clear_password_reset,
    create_user,
    get_db,
    get_user_by_email,
    issue_auth_token,
    reset_password_with_code as apply_password_reset,
    revoke_auth_token,
    sign_in_social_user,
    start_password_reset,
    verify_reset_code as check_reset_code,
)
from core.notifications.mailer import reset_code_email, reset_success_email, send_email

from ..deps import error_response, get_bearer_token, get_current_user
from ..models import (
    CurrentUserResponse,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProviderResponse,
    ResetPasswordWithCodeRequest,
    SignupRequest,
    SocialLoginRequest,
    SocialLoginResponse,
    SocialUser,
    UserSummary,
    VerifyResetCodeRequest,
)

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("api.auth")

RESET_REQUESTED_MESSAGE = "If a user with that email exists, a password reset code will be sent"


@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """Register a new local account. The user logs in separately afterwards."""
    if not request.name or not request.name.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Valid name is required")

    if len(request.name.strip()) > 50:
        return error_response(status.HTTP_400_BAD_REQUEST, "Name cannot be more than 50 characters")

    if not is_valid_email(request.email):
        return error_response(status.HTTP_400_BAD_REQUEST, "Valid email is required")

    if not is_valid_password(request.password):
        return error_response(status.HTTP_400_BAD_REQUEST, PASSWORD_POLICY_MESSAGE)

    if get_user_by_email(db, request.email):
        return error_response(status.HTTP_400_BAD_REQUEST, "Email already in use")

    try:
        create_user(db, request.name, request.email, request.password)
    except sqlalchemy.exc.IntegrityError:
        # Lost a race with a concurrent signup for the same email
        db.rollback()
        return error_response(status.HTTP_400_BAD_REQUEST, "Email already in use")

    return MessageResponse(success=True, message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    if not is_valid_email(request.email):
        return error_response(status.HTTP_400_BAD_REQUEST, "Valid email is required")

    if not request.password:
        return error_response(status.HTTP_400_BAD_REQUEST, "Password is required")

    user = authenticate_user(db, request.email, request.password)
    if user is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    token = issue_auth_token(db, user)
    logger.info("User %s logged in", user.id)
    return LoginResponse(success=True, token=token, user=UserSummary.model_validate(user))


def _social_login(db: Session, user: User) -> SocialLoginResponse:
    token = issue_auth_token(db, user)
    logger.info("User %s signed in with %s", user.id, user.auth_provider)
    return SocialLoginResponse(success=True, token=token, user=SocialUser.model_validate(user))


@router.post("/oauth/google", response_model=SocialLoginResponse, response_model_exclude_none=True)
def google_oauth(request: SocialLoginRequest, db: Session = Depends(get_db)):
    """Sign in with a Google ID token, creating the account on first use."""
    if not request.id_token:
        return error_response(status.HTTP_400_BAD_REQUEST, "ID token is required")

    try:
        claims = verify_google_token(request.id_token)
    except SocialAuthError as e:
        logger.warning("Google sign-in rejected: %s", e)
        return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid ID token")
    except (requests.RequestException, ValueError) as e:
        logger.error("Google OAuth error: %s", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error during Google authentication")

    user = sign_in_social_user(
        db, "google", claims["email"],
        name=claims.get("name"),
        profile_picture=claims.get("picture"),
    )
    return _social_login(db, user)


@router.post("/oauth/apple", response_model=SocialLoginResponse, response_model_exclude_none=True)
def apple_oauth(request: SocialLoginRequest, db: Session = Depends(get_db)):
    """Sign in with an Apple identity token bound to the nonce the app generated."""
    if not request.id_token:
        return error_response(status.HTTP_400_BAD_REQUEST, "ID token is required")

    if not request.nonce:
        return error_response(status.HTTP_400_BAD_REQUEST, "Nonce is required")

    try:
        claims = verify_apple_token(request.id_token, request.nonce)
    except SocialAuthError as e:
        logger.warning("Apple sign-in rejected: %s", e)
        return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid ID token")

    user = sign_in_social_user(db, "apple", claims["email"], apple_user_id=claims["sub"])
    return _social_login(db, user)


@router.post("/logout", response_model=MessageResponse)
def logout(token: str = Depends(get_bearer_token),
           user: User = Depends(get_current_user),
           db: Session = Depends(get_db)):
    """Revoke the token the request was made with."""
    revoke_auth_token(db, token)
    logger.info("User %s logged out", user.id)
    return MessageResponse(success=True, message="Logged out successfully")


@router.get("/me", response_model=CurrentUserResponse)
def me(user: User = Depends(get_current_user)):
    return CurrentUserResponse(success=True, user=UserSummary.model_validate(user))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(request: EmailRequest, db: Session = Depends(get_db)):
    """Email a 6-digit reset code.

    The answer is the same whether or not the account exists.
    """
    if not is_valid_email(request.email):
        return error_response(status.HTTP_400_BAD_REQUEST, "Valid email is required")

    user = get_user_by_email(db, request.email)
    if user is None:
        return MessageResponse(success=True, message=RESET_REQUESTED_MESSAGE)

    settings = get_settings()
    code = start_password_reset(db, user)
    content = reset_code_email(code, settings.APP_NAME, settings.RESET_CODE_EXPIRE_MINUTES)

    if not send_email(user.email, content["subject"], content["text"], content["html"]):
        clear_password_reset(db, user)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Email could not be sent")

    return MessageResponse(success=True, message=RESET_REQUESTED_MESSAGE)


@router.post("/verify-reset-code", response_model=MessageResponse)
def verify_reset_code(request: VerifyResetCodeRequest, db: Session = Depends(get_db)):
    if not request.email or not request.code:
        return error_response(status.HTTP_400_BAD_REQUEST, "Email and reset code are required")

    if check_reset_code(db, request.email, request.code) is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid or expired code")

    return MessageResponse(success=True, message="Reset code verified successfully")


@router.post("/reset-password-with-code", response_model=MessageResponse)
def reset_password_with_code(request: ResetPasswordWithCodeRequest, db: Session = Depends(get_db)):
    """Set a new password once the emailed code has been verified."""
    if not request.email or not request.password:
        return error_response(status.HTTP_400_BAD_REQUEST, "Email and new password are required")

    if not is_valid_password(request.password):
        return error_response(status.HTTP_400_BAD_REQUEST, PASSWORD_POLICY_MESSAGE)

    user = apply_password_reset(db, request.email, request.password)
    if user is None:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid or expired verification. Please request a new code.",
        )

    content = reset_success_email()
    send_email(user.email, content["subject"], content["text"], content["html"])

    return MessageResponse(success=True, message="Password reset successful")


@router.post("/check-provider", response_model=ProviderResponse)
def check_provider(request: EmailRequest, db: Session = Depends(get_db)):
    """Tell the app whether an email belongs to a Google or Apple account."""
    if not request.email:
        return error_response(status.HTTP_400_BAD_REQUEST, "Email is required")

    user = get_user_by_email(db, request.email)
    if user is None or user.auth_provider not in ("google", "apple"):
        return ProviderResponse(success=True, provider=None)

    return ProviderResponse(success=True, provider=user.auth_provider.capitalize())
