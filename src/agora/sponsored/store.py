"""Persistence port for user statistics and achievement claims."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from agora.db.models import AchievementClaim, User
from agora.errors import DuplicateConstraintViolation

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class StatsDelta:
    """Counter increments applied together in one update."""

    tasks_created: int = 0
    tasks_participated: int = 0
    votes_count: int = 0
    donations_count: int = 0
    total_donated: int = 0
    reputation_score: int = 0

    def items(self) -> list[tuple[str, int]]:
        """Non-zero (column, increment) pairs."""
        return [(name, value) for name, value in vars(self).items() if value]


class StatsStore(abc.ABC):
    """What the orchestrator needs from the relational store."""

    @abc.abstractmethod
    async def find_user(self, user_id: int) -> User | None: ...

    @abc.abstractmethod
    async def find_claim(self, user_id: int, achievement_type: int) -> AchievementClaim | None: ...

    @abc.abstractmethod
    async def list_claims(self, user_id: int) -> Sequence[AchievementClaim]: ...

    @abc.abstractmethod
    async def update_user_stats(self, user_id: int, delta: StatsDelta) -> None:
        """Apply every increment in ``delta`` atomically, or none of them."""

    @abc.abstractmethod
    async def set_profile_id(self, user_id: int, profile_id: str) -> None:
        """Record the on-chain profile. Fails if one is already recorded."""

    @abc.abstractmethod
    async def insert_claim(
        self,
        user_id: int,
        achievement_type: int,
        nft_object_id: str | None,
        digest: str,
        image_url: str | None,
    ) -> AchievementClaim:
        """Insert a claim.

        Raises:
            DuplicateConstraintViolation: If (user, type) already exists.
        """

    @abc.abstractmethod
    async def users_pending_profile(self) -> Sequence[User]:
        """Users with a wallet bound and no profile object yet."""

    @abc.abstractmethod
    async def users_for_auto_claim(self) -> Sequence[User]:
        """Users who opted into auto-claim and have a wallet bound."""


class SqlStatsStore(StatsStore):
    """StatsStore over an AsyncSession. Each write commits on its own."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_user(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_claim(self, user_id: int, achievement_type: int) -> AchievementClaim | None:
        result = await self.db.execute(
            select(AchievementClaim).where(
                AchievementClaim.user_id == user_id,
                AchievementClaim.achievement_type == achievement_type,
            )
        )
        return result.scalar_one_or_none()

    async def list_claims(self, user_id: int) -> Sequence[AchievementClaim]:
        result = await self.db.execute(
            select(AchievementClaim)
            .where(AchievementClaim.user_id == user_id)
            .order_by(AchievementClaim.achievement_type)
        )
        return result.scalars().all()

    async def update_user_stats(self, user_id: int, delta: StatsDelta) -> None:
        values = {name: getattr(User, name) + amount for name, amount in delta.items()}
        if not values:
            return
        result = await self.db.execute(update(User).where(User.id == user_id).values(**values))
        if result.rowcount != 1:
            await self.db.rollback()
            msg = f"User {user_id} not found while updating stats"
            raise LookupError(msg)
        await self.db.commit()

    async def set_profile_id(self, user_id: int, profile_id: str) -> None:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.profile_id.is_(None))
            .values(profile_id=profile_id)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            msg = f"User {user_id} missing or already has a profile"
            raise LookupError(msg)
        await self.db.commit()

    async def insert_claim(
        self,
        user_id: int,
        achievement_type: int,
        nft_object_id: str | None,
        digest: str,
        image_url: str | None,
    ) -> AchievementClaim:
        claim = AchievementClaim(
            user_id=user_id,
            achievement_type=achievement_type,
            nft_object_id=nft_object_id,
            digest=digest,
            image_url=image_url,
        )
        self.db.add(claim)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateConstraintViolation(user_id, achievement_type) from e
        return claim

    async def users_pending_profile(self) -> Sequence[User]:
        result = await self.db.execute(
            select(User)
            .where(
                User.profile_id.is_(None),
                (User.sui_wallet_address.is_not(None)) | (User.real_wallet_address.is_not(None)),
            )
            .order_by(User.id)
        )
        return result.scalars().all()

    async def users_for_auto_claim(self) -> Sequence[User]:
        result = await self.db.execute(
            select(User)
            .where(
                User.auto_claim.is_(True),
                (User.sui_wallet_address.is_not(None)) | (User.real_wallet_address.is_not(None)),
            )
            .order_by(User.id)
        )
        return result.scalars().all()
