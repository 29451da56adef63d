"""User lookups keyed by wallet address."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import or_, select

from agora.chain.address import normalize_sui_address
from agora.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def normalize_wallets(addresses: Iterable[str]) -> list[str]:
    """
    Normalize and de-duplicate wallet addresses, keeping request order.

    Raises:
        ValueError: If any address is malformed.
    """
    seen: dict[str, None] = {}
    for address in addresses:
        seen.setdefault(normalize_sui_address(address), None)
    return list(seen)


async def profiles_by_wallets(db: AsyncSession, addresses: list[str]) -> list[tuple[str, User]]:
    """
    Resolve wallet addresses to users, matching real and virtual wallets.

    Returns (address, user) pairs in request order; unknown addresses are
    left out.
    """
    if not addresses:
        return []
    result = await db.execute(
        select(User).where(
            or_(User.real_wallet_address.in_(addresses), User.sui_wallet_address.in_(addresses))
        )
    )
    by_wallet: dict[str, User] = {}
    for user in result.scalars():
        for wallet in (user.real_wallet_address, user.sui_wallet_address):
            if wallet:
                by_wallet.setdefault(wallet, user)
    return [(address, by_wallet[address]) for address in addresses if address in by_wallet]
