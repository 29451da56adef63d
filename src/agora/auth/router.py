"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from agora.auth.dependencies import get_current_user
from agora.auth.jwt import create_access_token
from agora.auth.schemas import (
    MeResponse,
    RegisterIntraRequest,
    RegisterIntraResponse,
    UserResponse,
    ZkLoginFinishRequest,
    ZkLoginFinishResponse,
    ZkLoginStartResponse,
)
from agora.auth.intra import IntraAuthError
from agora.auth.service import (
    AccountConflictError,
    IntraIdentityMismatchError,
    WalletConflictError,
    finish_zklogin,
    register_intra_user,
    start_zklogin,
)
from agora.database import get_session
from agora.db.models import User
from agora.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

WALLET_GUIDANCE = (
    "No wallet is bound to this account yet. Complete the zkLogin flow "
    "(POST /api/auth/zklogin/start, then /api/auth/zklogin/finish) before "
    "creating tasks, voting or claiming achievements."
)


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar=user.avatar,
        intra_id=user.intra_id,
        sui_wallet_address=user.sui_wallet_address,
        real_wallet_address=user.real_wallet_address,
        wallet_address=user.wallet_address,
        profile_id=user.profile_id,
        tasks_created=user.tasks_created,
        tasks_participated=user.tasks_participated,
        votes_count=user.votes_count,
        donations_count=user.donations_count,
        total_donated=str(user.total_donated or 0),
        reputation_score=user.reputation_score,
        auto_claim=user.auto_claim,
        created_at=user.created_at,
    )


# ---------------------------------------------------------------------------
# Intra registration
# ---------------------------------------------------------------------------


@router.post("/register-intra", response_model=RegisterIntraResponse)
async def register_intra(
    body: RegisterIntraRequest,
    db: AsyncSession = Depends(get_session),
) -> RegisterIntraResponse:
    """Create or sign in the account for a verified 42 intra identity and issue a session token."""
    try:
        user, _created = await register_intra_user(
            db,
            access_token=body.access_token,
            intra_id=body.intra_id,
            email=body.email,
            display_name=body.display_name,
            username=body.username,
            zk_wallet_address=body.zk_wallet_address,
        )
    except (WalletConflictError, AccountConflictError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except IntraIdentityMismatchError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except IntraAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()
    return RegisterIntraResponse(
        token=create_access_token(user.id, user.email),
        wallet_address=user.wallet_address,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse, response_model_exclude_none=True)
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    """Current user, with guidance when no wallet is bound."""
    guidance = None if user.wallet_address else WALLET_GUIDANCE
    return MeResponse(user=user_response(user), guidance=guidance)


@router.post("/logout")
async def logout() -> dict[str, str]:
    """Tokens are stateless; the client drops its copy."""
    return {"message": "Logged out successfully"}


# ---------------------------------------------------------------------------
# zkLogin
# ---------------------------------------------------------------------------


@router.post("/zklogin/start", response_model=ZkLoginStartResponse)
async def zklogin_start(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> ZkLoginStartResponse:
    """Issue the salt and single-use randomness for a zkLogin binding."""
    params = await start_zklogin(db, redis, user)
    await db.commit()
    return ZkLoginStartResponse(**params)


@router.post("/zklogin/finish", response_model=ZkLoginFinishResponse)
async def zklogin_finish(
    body: ZkLoginFinishRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> ZkLoginFinishResponse:
    """Verify the OIDC id token and bind the derived address as the real wallet."""
    try:
        user = await finish_zklogin(
            db,
            redis,
            user,
            id_token=body.id_token,
            address=body.address,
            issuer=body.iss,
            audience=body.aud,
        )
    except WalletConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()
    return ZkLoginFinishResponse(user=user_response(user))
