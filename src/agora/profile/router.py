"""Profile router: /api/profile/* endpoints: stats, achievements, on-chain profile."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agora.achievements.eligibility import (
    AchievementKind,
    StatsSnapshot,
    achievement_name,
    claimable_kinds,
    eligible_kinds,
)
from agora.auth.dependencies import get_current_user, require_admin
from agora.database import get_session
from agora.db.models import User
from agora.dependencies import get_orchestrator
from agora.profile.schemas import (
    AchievementsResponse,
    AchievementStatus,
    AutoClaimRequest,
    AutoClaimResponse,
    ClaimedAchievement,
    ClaimNftRequest,
    ClaimNftResponse,
    CreateProfileRequest,
    CreateProfileResponse,
    MigrateAllResponse,
    ProfileStatsResponse,
)
from agora.schemas import StatsResponse
from agora.sponsored.orchestrator import SponsoredActionOrchestrator
from agora.sponsored.store import SqlStatsStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/profile", tags=["Profile"])


# ---------------------------------------------------------------------------
# Stats & achievements
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=ProfileStatsResponse)
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileStatsResponse:
    """Counters, on-chain profile and minted achievements for the current user."""
    snapshot = StatsSnapshot.from_user(user)
    claims = await SqlStatsStore(db).list_claims(user.id)
    return ProfileStatsResponse(
        stats=StatsResponse(**snapshot.to_public()),
        profile_id=user.profile_id,
        wallet_address=user.wallet_address,
        claimed_achievements=[c.achievement_type for c in claims],
        nft_achievements=[
            ClaimedAchievement(
                achievement_type=c.achievement_type,
                name=achievement_name(AchievementKind(c.achievement_type)),
                nft_object_id=c.nft_object_id,
                digest=c.digest,
                image_url=c.image_url,
                created_at=c.created_at,
            )
            for c in claims
        ],
    )


@router.get("/achievements", response_model=AchievementsResponse)
async def get_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AchievementsResponse:
    """Every achievement kind with its eligibility and claim state."""
    snapshot = StatsSnapshot.from_user(user)
    claimed = {c.achievement_type for c in await SqlStatsStore(db).list_claims(user.id)}
    eligible = eligible_kinds(snapshot)
    return AchievementsResponse(
        achievements=[
            AchievementStatus(
                achievement_type=int(kind),
                name=achievement_name(kind),
                eligible=kind in eligible,
                claimed=int(kind) in claimed,
            )
            for kind in AchievementKind
        ],
        eligible=[int(k) for k in eligible],
        claimable=[int(k) for k in claimable_kinds(snapshot, claimed)],
    )


@router.patch("/auto-claim", response_model=AutoClaimResponse)
async def set_auto_claim(
    body: AutoClaimRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AutoClaimResponse:
    """Opt in or out of background achievement claiming."""
    user.auto_claim = body.enabled
    await db.commit()
    logger.info("auto_claim_updated", user_id=user.id, enabled=body.enabled)
    return AutoClaimResponse(auto_claim=user.auto_claim)


# ---------------------------------------------------------------------------
# Sponsored on-chain actions
# ---------------------------------------------------------------------------


@router.post("/create-sponsored", response_model=CreateProfileResponse)
async def create_profile_sponsored(
    body: CreateProfileRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> CreateProfileResponse:
    """Create the on-chain profile; omitted fields fall back to the stored account."""
    created = await orchestrator.create_profile(
        user.id,
        intra_id=str(body.intra_id) if body.intra_id is not None else None,
        email=body.email,
        display_name=body.display_name,
    )
    return CreateProfileResponse(profile_id=created.profile_id, digest=created.digest)


@router.post("/claim-nft-sponsored", response_model=ClaimNftResponse)
async def claim_nft_sponsored(
    body: ClaimNftRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> ClaimNftResponse:
    """Mint an achievement NFT the user is eligible for and has not claimed."""
    claimed = await orchestrator.claim_achievement(user.id, body.achievement_type)
    return ClaimNftResponse(digest=claimed.digest, nft_id=claimed.nft_id, achievement_name=claimed.name)


@router.post("/migrate-all", response_model=MigrateAllResponse, dependencies=[Depends(require_admin)])
async def migrate_all(
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> MigrateAllResponse:
    """Create on-chain profiles for every wallet-bound user that lacks one."""
    report = await orchestrator.migrate_all()
    return MigrateAllResponse(migrated=report.migrated, failed=report.failed, results=report.results)
