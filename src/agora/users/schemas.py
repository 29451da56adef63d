"""Request/response schemas for user endpoints."""

from __future__ import annotations

from pydantic import Field

from agora.schemas import CamelModel


class WalletUpdateRequest(CamelModel):
    """Bind the virtual wallet address."""

    wallet_address: str = Field(..., min_length=3, max_length=66)


class WalletUpdateResponse(CamelModel):
    success: bool = True
    wallet_address: str
    previous_address: str | None = None


class ProfilesByWalletsRequest(CamelModel):
    wallet_addresses: list[str] = Field(..., min_length=1, max_length=200)


class WalletProfile(CamelModel):
    """Public identity shown next to on-chain activity."""

    wallet_address: str
    username: str | None = None
    avatar: str | None = None
    first_name: str | None = None
    last_name: str | None = None
