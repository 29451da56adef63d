"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from agora.schemas import CamelModel

# ---------------------------------------------------------------------------
# Intra registration
# ---------------------------------------------------------------------------


class RegisterIntraRequest(CamelModel):
    """42 intra sign-in, posted by the frontend after the OAuth callback."""

    access_token: str = Field(..., min_length=1, max_length=4096)
    intra_id: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=320)
    display_name: str = Field(..., min_length=1, max_length=64)
    username: str | None = Field(None, max_length=64)
    zk_wallet_address: str | None = None

    @field_validator("intra_id", mode="before")
    @classmethod
    def coerce_intra_id(cls, v: object) -> object:
        """Intra ids arrive as numbers from the 42 API."""
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        v = v.lower().strip()
        if "@" not in v:
            msg = "Invalid email address"
            raise ValueError(msg)
        return v


class RegisterIntraResponse(CamelModel):
    success: bool = True
    token: str
    wallet_address: str | None = None


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------


class UserResponse(CamelModel):
    id: int
    email: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None
    intra_id: str | None = None
    sui_wallet_address: str | None = None
    real_wallet_address: str | None = None
    wallet_address: str | None = None
    profile_id: str | None = None
    tasks_created: int = 0
    tasks_participated: int = 0
    votes_count: int = 0
    donations_count: int = 0
    total_donated: str = "0"
    reputation_score: int = 0
    auto_claim: bool = False
    created_at: datetime | None = None


class MeResponse(CamelModel):
    user: UserResponse
    guidance: str | None = None


# ---------------------------------------------------------------------------
# zkLogin
# ---------------------------------------------------------------------------


class ZkLoginStartResponse(CamelModel):
    salt: str
    jwt_randomness: str
    expires_in: int


class ZkLoginFinishRequest(CamelModel):
    id_token: str = Field(..., min_length=1)
    address: str = Field(..., min_length=3, max_length=66)
    iss: str | None = None
    aud: str | None = None


class ZkLoginFinishResponse(CamelModel):
    user: UserResponse
