"""OIDC id-token verification for zkLogin wallet binding."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

import jwt

from agora.config import get_settings


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(url, cache_keys=True)


def _verify_sync(id_token: str, issuer: str | None, audience: str | None) -> dict[str, Any]:
    settings = get_settings()
    signing_key = _jwks_client(settings.zklogin_jwks_url).get_signing_key_from_jwt(id_token)
    expected_aud = audience or settings.zklogin_audience or None
    claims: dict[str, Any] = jwt.decode(
        id_token,
        signing_key.key,
        algorithms=["RS256"],
        audience=expected_aud,
        options={"verify_aud": expected_aud is not None, "require": ["sub", "iss", "exp"]},
    )

    token_issuer = claims.get("iss")
    if token_issuer not in settings.zklogin_allowed_issuers:
        msg = f"Issuer not allowed: {token_issuer}"
        raise jwt.InvalidIssuerError(msg)
    if issuer and issuer != token_issuer:
        msg = "Issuer does not match id token"
        raise jwt.InvalidIssuerError(msg)
    return claims


async def verify_id_token(id_token: str, issuer: str | None = None, audience: str | None = None) -> dict[str, Any]:
    """
    Verify an OIDC id token against the provider's JWKS.

    The JWKS fetch is blocking, so it runs in a worker thread.

    Raises:
        ValueError: If the token cannot be verified.
    """
    try:
        return await asyncio.to_thread(_verify_sync, id_token, issuer, audience)
    except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
        msg = f"Invalid id token: {e}"
        raise ValueError(msg) from e
