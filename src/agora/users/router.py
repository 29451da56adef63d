"""User router: /api/user/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from agora.auth.dependencies import get_current_user
from agora.auth.service import WalletConflictError, bind_virtual_wallet
from agora.database import get_session
from agora.db.models import User
from agora.errors import ValidationError
from agora.users.schemas import (
    ProfilesByWalletsRequest,
    WalletProfile,
    WalletUpdateRequest,
    WalletUpdateResponse,
)
from agora.users.service import normalize_wallets, profiles_by_wallets

logger = structlog.get_logger()

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.post("/wallet", response_model=WalletUpdateResponse)
async def update_wallet(
    body: WalletUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> WalletUpdateResponse:
    """Bind (or rebind) the virtual wallet."""
    previous = user.sui_wallet_address
    try:
        wallet = await bind_virtual_wallet(db, user, body.wallet_address)
    except WalletConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValueError as e:
        raise ValidationError(["walletAddress"], str(e)) from e
    await db.commit()
    return WalletUpdateResponse(wallet_address=wallet, previous_address=previous)


@router.post("/profiles-by-wallets", response_model=list[WalletProfile])
async def get_profiles_by_wallets(
    body: ProfilesByWalletsRequest,
    db: AsyncSession = Depends(get_session),
) -> list[WalletProfile]:
    """Public identities for a batch of wallet addresses."""
    try:
        addresses = normalize_wallets(body.wallet_addresses)
    except ValueError as e:
        raise ValidationError(["walletAddresses"], str(e)) from e

    pairs = await profiles_by_wallets(db, addresses)
    return [
        WalletProfile(
            wallet_address=address,
            username=user.username,
            avatar=user.avatar,
            first_name=user.first_name,
            last_name=user.last_name,
        )
        for address, user in pairs
    ]
