"""Identity token checks for Google and Apple sign-in."""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
import requests

from config.settings import get_settings

logger = logging.getLogger("auth.social")

REQUEST_TIMEOUT = 10


class SocialAuthError(Exception):
    """The provider rejected the identity token or it failed verification."""


def verify_google_token(id_token: str, session: Optional[requests.Session] = None) -> Dict[str, Any]:
    """Check a Google ID token against Google's tokeninfo endpoint.

    Args:
        id_token: ID token obtained by the app from Google Sign-In
        session: requests session to use (module-level requests by default)

    Returns:
        The token claims: email, name, picture, aud...

    Raises:
        SocialAuthError: Google rejected the token, or it was issued for another client
        requests.RequestException: Google could not be reached
    """
    settings = get_settings()
    http = session or requests
    response = http.get(settings.GOOGLE_TOKENINFO_URL, params={"id_token": id_token}, timeout=REQUEST_TIMEOUT)
    if response.status_code != 200:
        raise SocialAuthError(f"Google rejected the ID token ({response.status_code})")

    claims = response.json()
    if settings.GOOGLE_CLIENT_ID and claims.get("aud") != settings.GOOGLE_CLIENT_ID:
        raise SocialAuthError("Google ID token was issued for another client")
    if not claims.get("email"):
        raise SocialAuthError("Google ID token carries no email")
    return claims


@lru_cache()
def _apple_keys() -> jwt.PyJWKClient:
    # Fetches and caches Apple's public signing keys
    return jwt.PyJWKClient(get_settings().APPLE_KEYS_URL)


def verify_apple_token(id_token: str, nonce: str) -> Dict[str, Any]:
    """Verify an Apple identity token (RS256 JWT) and the nonce it was issued for.

    The audience is only checked when APPLE_CLIENT_ID is configured.

    Raises:
        SocialAuthError: bad signature, issuer, audience, expiry or nonce
    """
    settings = get_settings()
    try:
        signing_key = _apple_keys().get_signing_key_from_jwt(id_token)
        claims = jwt.decode(
            id_token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.APPLE_CLIENT_ID or None,
            issuer=settings.APPLE_ISSUER,
            options={"verify_aud": bool(settings.APPLE_CLIENT_ID)},
        )
    except jwt.PyJWTError as e:
        raise SocialAuthError(f"Apple ID token failed verification: {e}") from e

    if claims.get("nonce") != nonce:
        raise SocialAuthError("Apple ID token nonce does not match")
    if not claims.get("sub") or not claims.get("email"):
        raise SocialAuthError("Apple ID token carries no account id or email")
    logger.debug("Verified Apple identity token for %s", claims["sub"])
    return claims
