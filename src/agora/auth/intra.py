"""42 intra identity lookup.

Registration carries the intra OAuth access token; the identity it belongs
to is read back from the intra API rather than trusted from the request.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from agora.config import get_settings
from agora.errors import TransportFailure

logger = structlog.get_logger()


class IntraAuthError(ValueError):
    """The access token was refused by the intra API."""


@dataclass(frozen=True)
class IntraIdentity:
    intra_id: str
    email: str
    login: str
    display_name: str


async def fetch_intra_identity(
    access_token: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IntraIdentity:
    """
    Resolve an intra access token to the account it was issued for.

    Raises:
        IntraAuthError: If the token is rejected or the profile is incomplete.
        TransportFailure: If the intra API cannot be reached.
    """
    settings = get_settings()
    async with httpx.AsyncClient(
        base_url=settings.intra_api_url,
        timeout=settings.intra_timeout_seconds,
        transport=transport,
    ) as client:
        try:
            response = await client.get("/v2/me", headers={"Authorization": f"Bearer {access_token}"})
        except httpx.HTTPError as e:
            logger.error("intra_api_unreachable", error=str(e))
            msg = "42 intra API unreachable"
            raise TransportFailure(msg, retryable=True) from e

    if response.status_code in (401, 403):
        msg = "Intra access token rejected"
        raise IntraAuthError(msg)
    if response.status_code >= 400:
        logger.error("intra_api_error", status=response.status_code, body=response.text[:200])
        msg = f"42 intra API returned {response.status_code}"
        raise TransportFailure(msg, retryable=response.status_code >= 500)

    try:
        data = response.json()
    except ValueError as e:
        msg = "42 intra API returned malformed JSON"
        raise TransportFailure(msg) from e

    if not isinstance(data, dict):
        data = {}
    intra_id = data.get("id")
    email = data.get("email")
    valid_id = isinstance(intra_id, (int, str)) and not isinstance(intra_id, bool) and str(intra_id)
    if not valid_id or not isinstance(email, str) or not email:
        msg = "Intra profile is missing id or email"
        raise IntraAuthError(msg)

    login = str(data.get("login") or "")
    return IntraIdentity(
        intra_id=str(intra_id),
        email=email.lower().strip(),
        login=login,
        display_name=str(data.get("displayname") or login),
    )
