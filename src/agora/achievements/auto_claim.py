"""Background auto-claim of earned achievements.

Runs as an asyncio task in the app lifespan. Each tick claims, for every
opted-in user with a wallet, all kinds that are eligible and unclaimed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agora.achievements.eligibility import StatsSnapshot, claimable_kinds
from agora.chain.executor import TransactionExecutor
from agora.config import Settings
from agora.errors import AgoraError
from agora.sponsored.orchestrator import SponsoredActionOrchestrator
from agora.sponsored.store import SqlStatsStore

logger = structlog.get_logger()


@dataclass
class TickSummary:
    users: int = 0
    claimed: int = 0
    failed: int = 0


class AutoClaimScheduler:
    """Periodically claims achievements for users who opted in."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        executor: TransactionExecutor,
        settings: Settings,
    ) -> None:
        self.session_factory = session_factory
        self.executor = executor
        self.settings = settings
        self.interval = settings.auto_claim_interval
        self._running = False
        self._stopping = False
        self._wakeup = asyncio.Event()

    async def _claim_for_user(self, user_id: int, summary: TickSummary) -> None:
        async with self.session_factory() as db:
            store = SqlStatsStore(db)
            user = await store.find_user(user_id)
            if user is None or not user.wallet_address:
                return
            claimed = {c.achievement_type for c in await store.list_claims(user_id)}
            pending = claimable_kinds(StatsSnapshot.from_user(user), claimed)
            orchestrator = SponsoredActionOrchestrator(store, self.executor, self.settings)
            for kind in pending:
                if self._stopping:
                    return
                try:
                    result = await orchestrator.claim_achievement(user_id, int(kind))
                except AgoraError as e:
                    summary.failed += 1
                    logger.warning(
                        "auto_claim_failed",
                        user_id=user_id,
                        achievement_type=int(kind),
                        error=e.code,
                        detail=e.detail,
                    )
                else:
                    summary.claimed += 1
                    logger.info("auto_claimed", user_id=user_id, achievement_type=int(kind), nft_id=result.nft_id)

    async def run_once(self) -> TickSummary:
        """One pass over every opted-in user. Failures never stop the pass."""
        summary = TickSummary()
        async with self.session_factory() as db:
            user_ids = [u.id for u in await SqlStatsStore(db).users_for_auto_claim()]
        summary.users = len(user_ids)

        for user_id in user_ids:
            if self._stopping:
                break
            try:
                await self._claim_for_user(user_id, summary)
            except Exception as e:  # noqa: BLE001
                summary.failed += 1
                logger.error("auto_claim_user_error", user_id=user_id, error=str(e), exc_info=e)

        if summary.claimed or summary.failed:
            logger.info("auto_claim_tick", users=summary.users, claimed=summary.claimed, failed=summary.failed)
        return summary

    async def start(self) -> None:
        """Tick every ``interval`` seconds until stop() is called."""
        self._running = True
        self._stopping = False
        self._wakeup.clear()
        logger.info("auto_claim_started", interval=self.interval)
        try:
            while self._running:
                await self.run_once()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval)
                except TimeoutError:
                    pass
        except asyncio.CancelledError:
            pass
        finally:
            logger.info("auto_claim_stopped")

    async def stop(self) -> None:
        """Signal the loop to exit once the claim in flight settles."""
        self._running = False
        self._stopping = True
        self._wakeup.set()

    async def shutdown(self, task: asyncio.Task[None], timeout: float) -> None:
        """Stop and wait for ``task`` to wind down.

        A claim already handed to the executor is allowed to finish and be
        recorded. The task is cancelled only when it overruns ``timeout``.
        """
        await self.stop()
        try:
            await asyncio.wait_for(task, timeout=timeout)
        except TimeoutError:
            logger.error("auto_claim_shutdown_timeout", timeout=timeout)
