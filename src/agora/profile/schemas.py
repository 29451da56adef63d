"""Request/response schemas for profile and achievement endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, StrictInt, StrictStr

from agora.schemas import CamelModel, StatsResponse


class ClaimedAchievement(CamelModel):
    achievement_type: int
    name: str
    nft_object_id: str | None = None
    digest: str | None = None
    image_url: str | None = None
    created_at: datetime


class ProfileStatsResponse(CamelModel):
    stats: StatsResponse
    profile_id: str | None = None
    wallet_address: str | None = None
    claimed_achievements: list[int]
    nft_achievements: list[ClaimedAchievement]


class AchievementStatus(CamelModel):
    achievement_type: int
    name: str
    eligible: bool
    claimed: bool


class AchievementsResponse(CamelModel):
    achievements: list[AchievementStatus]
    eligible: list[int]
    claimable: list[int]


class AutoClaimRequest(CamelModel):
    enabled: bool


class AutoClaimResponse(CamelModel):
    success: bool = True
    auto_claim: bool


class CreateProfileRequest(CamelModel):
    intra_id: StrictStr | StrictInt | None = None
    email: str | None = Field(None, max_length=320)
    display_name: str | None = Field(None, max_length=64)


class CreateProfileResponse(CamelModel):
    success: bool = True
    profile_id: str
    digest: str


class ClaimNftRequest(CamelModel):
    achievement_type: Any = None


class ClaimNftResponse(CamelModel):
    success: bool = True
    digest: str
    nft_id: str
    achievement_name: str


class MigrateAllResponse(CamelModel):
    success: bool = True
    migrated: int
    failed: int
    results: list[dict[str, Any]]
