"""
Authentication business logic.

Handles account creation for verified 42 intra sign-ins and the zkLogin
wallet-binding handshake.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select

from agora.auth.intra import IntraAuthError, fetch_intra_identity
from agora.auth.zklogin import verify_id_token
from agora.chain.address import normalize_sui_address
from agora.config import get_settings
from agora.db.models import User
from agora.redis_client import zklogin_nonce_key

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class WalletConflictError(ValueError):
    """The wallet address is already bound to another account."""


class AccountConflictError(ValueError):
    """The email is already held by an account with a different sign-in."""


class IntraIdentityMismatchError(IntraAuthError):
    """The intra access token was issued for a different account."""


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_wallet(db: AsyncSession, address: str) -> User | None:
    """Fetch the user owning a wallet, real or virtual."""
    result = await db.execute(
        select(User)
        .where(or_(User.real_wallet_address == address, User.sui_wallet_address == address))
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# 42 intra registration
# ---------------------------------------------------------------------------


async def register_intra_user(
    db: AsyncSession,
    access_token: str,
    intra_id: str,
    email: str,
    display_name: str,
    username: str | None = None,
    zk_wallet_address: str | None = None,
) -> tuple[User, bool]:
    """
    Find the account for a verified intra identity or create it.

    The access token is resolved against the intra API and must belong to
    the claimed intra id and email. Accounts are matched by intra id only;
    an email already held by another account is a conflict, never a merge.

    Returns:
        Tuple of (user, created).

    Raises:
        IntraAuthError: If the intra API rejects the access token.
        IntraIdentityMismatchError: If the token belongs to another intra account.
        AccountConflictError: If the email is held by an account without this intra id.
        ValueError: If the wallet address is malformed.
        WalletConflictError: If the wallet is bound to another account.
    """
    wallet = normalize_sui_address(zk_wallet_address) if zk_wallet_address else None
    normalized_email = email.lower().strip()

    identity = await fetch_intra_identity(access_token)
    if identity.intra_id != str(intra_id) or identity.email != normalized_email:
        logger.warning("intra_identity_mismatch", claimed_intra_id=intra_id, token_intra_id=identity.intra_id)
        msg = "Intra access token does not belong to this intra account"
        raise IntraIdentityMismatchError(msg)

    result = await db.execute(select(User).where(User.intra_id == identity.intra_id))
    user = result.scalar_one_or_none()
    created = user is None

    if user is None and await get_user_by_email(db, normalized_email) is not None:
        logger.warning("intra_email_conflict", intra_id=identity.intra_id)
        msg = "An account with this email already exists"
        raise AccountConflictError(msg)

    if wallet is not None:
        owner = await get_user_by_wallet(db, wallet)
        if owner is not None and (user is None or owner.id != user.id):
            msg = "Wallet address is already bound to another account"
            raise WalletConflictError(msg)

    if user is None:
        user = User(
            email=normalized_email,
            intra_id=identity.intra_id,
            username=username or display_name,
            sui_wallet_address=wallet,
        )
        db.add(user)
        await db.flush()
        logger.info("user_created", user_id=user.id, email=normalized_email, method="intra")
        return user, created

    if username or not user.username:
        user.username = username or display_name
    if wallet is not None and not user.sui_wallet_address:
        user.sui_wallet_address = wallet
    await db.flush()
    return user, created


async def bind_virtual_wallet(db: AsyncSession, user: User, address: str) -> str:
    """
    Explicitly (re)bind the user's virtual wallet.

    Raises:
        ValueError: If the address is malformed.
        WalletConflictError: If another account owns it.
    """
    wallet = normalize_sui_address(address)
    owner = await get_user_by_wallet(db, wallet)
    if owner is not None and owner.id != user.id:
        msg = "Wallet address is already bound to another account"
        raise WalletConflictError(msg)
    previous = user.sui_wallet_address
    user.sui_wallet_address = wallet
    await db.flush()
    logger.info("virtual_wallet_bound", user_id=user.id, previous=previous, address=wallet)
    return wallet


# ---------------------------------------------------------------------------
# zkLogin binding
# ---------------------------------------------------------------------------


async def start_zklogin(db: AsyncSession, redis: Redis, user: User) -> dict[str, Any]:
    """
    Begin a zkLogin binding.

    The salt is stable per user so the derived address never changes; the
    jwt randomness is single-use and expires with the pending handshake.
    """
    settings = get_settings()
    if not user.zklogin_salt:
        user.zklogin_salt = str(secrets.randbits(128))
        await db.flush()

    jwt_randomness = str(secrets.randbits(128))
    await redis.set(
        zklogin_nonce_key(user.id),
        jwt_randomness,
        ex=settings.zklogin_nonce_ttl_seconds,
    )
    return {
        "salt": user.zklogin_salt,
        "jwt_randomness": jwt_randomness,
        "expires_in": settings.zklogin_nonce_ttl_seconds,
    }


async def finish_zklogin(
    db: AsyncSession,
    redis: Redis,
    user: User,
    id_token: str,
    address: str,
    issuer: str | None = None,
    audience: str | None = None,
) -> User:
    """
    Complete a zkLogin binding: verify the id token and bind the real wallet.

    Raises:
        ValueError: If no handshake is pending, the token or address is invalid.
        WalletConflictError: If the address belongs to another account.
    """
    key = zklogin_nonce_key(user.id)
    if await redis.get(key) is None:
        msg = "zkLogin session expired or not started"
        raise ValueError(msg)

    claims = await verify_id_token(id_token, issuer, audience)
    wallet = normalize_sui_address(address)

    owner = await get_user_by_wallet(db, wallet)
    if owner is not None and owner.id != user.id:
        msg = "Wallet address is already bound to another account"
        raise WalletConflictError(msg)

    await redis.delete(key)
    user.real_wallet_address = wallet
    user.zklogin_subject = str(claims["sub"])
    await db.flush()
    logger.info("zklogin_wallet_bound", user_id=user.id, address=wallet, issuer=claims.get("iss"))
    return user
