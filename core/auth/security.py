"""Password hashing, opaque tokens and input policies for accounts."""

import hashlib
import hmac
import re
import secrets
from typing import Optional

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PASSWORD_POLICY = re.compile(
    r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]{8,}$"
)
PASSWORD_POLICY_MESSAGE = "Password must be at least 8 characters and include letters and numbers"

PBKDF2_ALGORITHM = "sha256"
PBKDF2_ITERATIONS = 390000


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_password(password) -> bool:
    return isinstance(password, str) and bool(PASSWORD_POLICY.match(password))


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Salted PBKDF2 hash in the form pbkdf2_sha256$<iterations>$<salt>$<hex digest>."""
    iterations = iterations or PBKDF2_ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(PBKDF2_ALGORITHM, password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"pbkdf2_{PBKDF2_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded) -> bool:
    if not encoded or not isinstance(password, str):
        return False
    try:
        scheme, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if scheme != f"pbkdf2_{PBKDF2_ALGORITHM}":
        return False
    digest = hashlib.pbkdf2_hmac(PBKDF2_ALGORITHM, password.encode("utf-8"), salt.encode("ascii"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_token() -> str:
    """Opaque bearer token for the Authorization header."""
    return secrets.token_urlsafe(32)


def generate_reset_code() -> str:
    """Random 6-digit code, 100000..999999."""
    return str(100000 + secrets.randbelow(900000))
