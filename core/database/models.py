# This file defines the database schema for our application using SQLAlchemy's Object Relational Mapper (ORM)
# It stores user accounts along with their login tokens and push notification devices

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
import uuid
from datetime import datetime

# Create a base class for all ORM models
Base = declarative_base()

AUTH_PROVIDERS = ("local", "google", "apple")


class User(Base):
    """A registered user of the mobile app.

    Passwords and reset codes are never stored in clear: password_hash holds a
    salted PBKDF2 hash and reset_code a SHA-256 digest of the emailed code.
    """
    __tablename__ = "users"

    # Primary key using UUID, stored as a string for broader database compatibility
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(50), nullable=False)

    # Always stored trimmed and lower-cased
    email = Column(String(255), nullable=False, unique=True, index=True)

    # Null for accounts created through a social provider
    password_hash = Column(String(255), nullable=True)

    phone = Column(String(50), nullable=True)
    profile_picture = Column(String(1024), nullable=True)
    auth_provider = Column(String(20), nullable=False, default="local")
    # Stable Apple account id ("sub" claim), set on first Apple sign-in
    apple_user_id = Column(String(255), nullable=True, unique=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)

    # Password reset by emailed 6-digit code
    reset_code = Column(String(64), nullable=True)
    reset_code_expire = Column(DateTime, nullable=True)
    reset_code_verified = Column(Boolean, nullable=False, default=False)

    email_updates = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    device_tokens = relationship("DeviceToken", back_populates="user", cascade="all, delete-orphan")
    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")


class DeviceToken(Base):
    """An Expo push token registered by one of the user's devices."""

    __tablename__ = "device_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_device_tokens_user_token"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="device_tokens")


class AuthToken(Base):
    """A bearer token handed out at login. Only its SHA-256 digest is kept."""

    __tablename__ = "auth_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")
