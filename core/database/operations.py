# This file contains the database access layer that handles connections to the database
# and provides reusable operations for users, login tokens and device tokens

from sqlalchemy import create_engine, or_, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import List, Optional, Generator
from datetime import datetime, timedelta
import logging
import pymysql
import sqlalchemy.exc

from config.settings import get_settings
from core.auth.security import (
    generate_reset_code,
    generate_token,
    hash_password,
    normalize_email,
    sha256_hex,
    verify_password,
)
from .models import Base, User, DeviceToken, AuthToken

logger = logging.getLogger("database")

# Get application settings
settings = get_settings()


def _engine_options(url: str) -> dict:
    """Connection options; SQLite needs cross-thread access under the API's threadpool."""
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        options["poolclass"] = StaticPool
    return options


# Database Connection Setup
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Session Factory
SessionLocal = sessionmaker(bind=engine)


def ensure_database_exists():
    """Create the MySQL database if the server does not have it yet."""
    if not settings.DATABASE_URL.startswith("mysql"):
        return
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return  # Database exists and connection works
    except sqlalchemy.exc.OperationalError as e:
        if "Unknown database" not in str(e):
            logger.error("Database connection error: %s", e)
            raise

    try:
        create_db_connection = pymysql.connect(
            host=settings.DB_HOST,
            user=settings.DB_USER,
            password=settings.DB_PASS,
            port=int(settings.DB_PORT)
        )
        try:
            with create_db_connection.cursor() as cursor:
                cursor.execute(f"CREATE DATABASE IF NOT EXISTS {settings.DB_NAME}")
        finally:
            create_db_connection.close()
        logger.info("Created database '%s'", settings.DB_NAME)
    except pymysql.Error as db_err:
        logger.error("Failed to create database: %s", db_err)
        raise


def init_db():
    """Create database tables if they don't exist."""
    ensure_database_exists()
    Base.metadata.create_all(bind=engine)


def check_connection() -> bool:
    """True when a trivial query succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except sqlalchemy.exc.SQLAlchemyError:
        return False


def get_db() -> Generator:
    """Create and yield a database session.

    FastAPI dependency: one session per request, always closed afterwards even
    if the request raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        # This ensures the session is closed even if an exception occurs
        db.close()


# --- Users ---

def get_user_by_id(db, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(db, name: str, email: str, password: Optional[str] = None,
                auth_provider: str = "local") -> User:
    """Create a new user account.

    Args:
        db: Database session
        name: Display name, stored trimmed
        email: Email address, stored trimmed and lower-cased
        password: Clear-text password, hashed before storage (None for social accounts)
        auth_provider: "local", "google" or "apple"

    Returns:
        The newly created User
    """
    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=hash_password(password) if password else None,
        auth_provider=auth_provider,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db, email: str, password: str) -> Optional[User]:
    """Return the user when email and password match, otherwise None."""
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def sign_in_social_user(db, provider: str, email: str, name: Optional[str] = None,
                        profile_picture: Optional[str] = None,
                        apple_user_id: Optional[str] = None) -> User:
    """Find or create the account behind a verified Google or Apple identity.

    A new account takes the provider's name, falling back to the part of the
    email before "@". An existing account registered another way is switched
    over to this provider and marked verified.
    """
    email = normalize_email(email)
    if apple_user_id:
        user = db.query(User).filter(or_(User.email == email, User.apple_user_id == apple_user_id)).first()
    else:
        user = get_user_by_email(db, email)

    display_name = (name or "").strip()[:50] or email.split("@")[0][:50]

    if user is None:
        user = User(
            name=display_name,
            email=email,
            auth_provider=provider,
            is_email_verified=True,
            profile_picture=profile_picture,
            apple_user_id=apple_user_id,
        )
        db.add(user)
        logger.info("Created %s account for %s", provider, email)
    elif user.auth_provider != provider:
        if name and name.strip():
            user.name = display_name
        if profile_picture:
            user.profile_picture = profile_picture
        if apple_user_id:
            user.apple_user_id = apple_user_id
        user.is_email_verified = True
        user.auth_provider = provider

    db.commit()
    db.refresh(user)
    return user


def update_profile(db, user: User, name: Optional[str] = None,
                   email_updates: Optional[bool] = None) -> User:
    if name:
        user.name = name.strip()
    if email_updates is not None:
        user.email_updates = email_updates
    db.commit()
    db.refresh(user)
    return user


# --- Login tokens ---

def issue_auth_token(db, user: User) -> str:
    """Create a login token for user and return it in clear; only its digest is stored."""
    token = generate_token()
    db.add(AuthToken(
        user_id=user.id,
        token_hash=sha256_hex(token),
        expires_at=datetime.utcnow() + timedelta(days=settings.AUTH_TOKEN_EXPIRE_DAYS),
    ))
    db.commit()
    return token


def get_user_for_token(db, token: str) -> Optional[User]:
    """Resolve a bearer token to its user; expired or unknown tokens give None."""
    record = db.query(AuthToken).filter(AuthToken.token_hash == sha256_hex(token)).first()
    if record is None or record.expires_at <= datetime.utcnow():
        return None
    return record.user


def revoke_auth_token(db, token: str) -> bool:
    deleted = db.query(AuthToken).filter(AuthToken.token_hash == sha256_hex(token)).delete()
    db.commit()
    return deleted > 0


# --- Password reset ---

def start_password_reset(db, user: User) -> str:
    """Generate a reset code for user and return it in clear.

    The stored digest is valid for RESET_CODE_EXPIRE_MINUTES and starts out
    unverified.
    """
    code = generate_reset_code()
    user.reset_code = sha256_hex(code)
    user.reset_code_expire = datetime.utcnow() + timedelta(minutes=settings.RESET_CODE_EXPIRE_MINUTES)
    user.reset_code_verified = False
    db.commit()
    return code


def clear_password_reset(db, user: User) -> None:
    user.reset_code = None
    user.reset_code_expire = None
    user.reset_code_verified = False
    db.commit()


def verify_reset_code(db, email: str, code: str) -> Optional[User]:
    """Mark the reset code as verified when it matches and has not expired."""
    user = db.query(User).filter(
        User.email == normalize_email(email),
        User.reset_code == sha256_hex(code.strip()),
        User.reset_code_expire > datetime.utcnow(),
    ).first()
    if user is None:
        return None
    user.reset_code_verified = True
    db.commit()
    return user


def reset_password_with_code(db, email: str, password: str) -> Optional[User]:
    """Set a new password for a user whose reset code was verified.

    Clears the reset code and revokes every outstanding login token.
    """
    user = db.query(User).filter(
        User.email == normalize_email(email),
        User.reset_code_verified.is_(True),
        User.reset_code_expire > datetime.utcnow(),
    ).first()
    if user is None:
        return None
    user.password_hash = hash_password(password)
    user.reset_code = None
    user.reset_code_expire = None
    user.reset_code_verified = False
    db.query(AuthToken).filter(AuthToken.user_id == user.id).delete()
    db.commit()
    db.refresh(user)
    return user


# --- Device tokens ---

def add_device_token(db, user: User, token: str) -> bool:
    """Register a push token for user. Returns False if it was already registered."""
    token = token.strip()
    exists = db.query(DeviceToken).filter(
        DeviceToken.user_id == user.id, DeviceToken.token == token
    ).first()
    if exists:
        return False
    db.add(DeviceToken(user_id=user.id, token=token))
    db.commit()
    return True


def remove_device_token(db, user: User, token: str) -> bool:
    deleted = db.query(DeviceToken).filter(
        DeviceToken.user_id == user.id, DeviceToken.token == token.strip()
    ).delete()
    db.commit()
    return deleted > 0


def list_device_tokens(db, user: User) -> List[str]:
    rows = db.query(DeviceToken).filter(DeviceToken.user_id == user.id)\
        .order_by(DeviceToken.created_at)\
        .all()
    return [row.token for row in rows]
