"""
Session JWT management.

HS256 with a shared secret by default; set ``AGORA_JWT_ALGORITHM=RS256`` and
the key paths to sign with an RSA key pair instead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import jwt

from agora.config import get_settings

_keys: tuple[str, str] | None = None


def _load_keys() -> tuple[str, str]:
    """Return (signing key, verification key), cached after first call."""
    global _keys  # noqa: PLW0603
    if _keys is None:
        settings = get_settings()
        if settings.jwt_algorithm.upper().startswith("HS"):
            _keys = (settings.jwt_secret, settings.jwt_secret)
        else:
            _keys = (
                Path(settings.jwt_private_key_path).read_text(),
                Path(settings.jwt_public_key_path).read_text(),
            )
    return _keys


def reset_keys() -> None:
    """Reset cached keys (useful for testing)."""
    global _keys  # noqa: PLW0603
    _keys = None


def create_access_token(user_id: int, email: str) -> str:
    """
    Create a session token.

    Args:
        user_id: The user's database ID.
        email: The user's email, echoed for clients.

    Returns:
        Encoded JWT string.
    """
    signing_key, _ = _load_keys()
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, signing_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or not an access token.
    """
    _, verify_key = _load_keys()
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            verify_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != "access":
        msg = f"Expected token type 'access', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
