"""Background auto-claim job."""

import asyncio

from sqlalchemy import select

from agora.achievements.auto_claim import AutoClaimScheduler
from agora.config import AUTO_CLAIM_MIN_INTERVAL_SECONDS, Settings
from agora.database import get_session_factory
from agora.db.models import AchievementClaim
from agora.errors import TransportFailure

WALLET = "0x" + "1" * 64


def test_interval_has_a_floor():
    assert Settings(auto_claim_interval_seconds=5).auto_claim_interval == AUTO_CLAIM_MIN_INTERVAL_SECONDS
    assert Settings(auto_claim_interval_seconds=120).auto_claim_interval == 120


async def test_claims_everything_claimable(db_session, make_user, fake_executor, settings):
    user, _ = await make_user(sui_wallet_address=WALLET, auto_claim=True, tasks_participated=1, donations_count=1)
    await make_user(sui_wallet_address="0x" + "2" * 64, tasks_participated=5)
    scheduler = AutoClaimScheduler(get_session_factory(), fake_executor, settings)

    summary = await scheduler.run_once()

    assert (summary.users, summary.claimed, summary.failed) == (1, 2, 0)
    rows = (await db_session.execute(select(AchievementClaim.achievement_type))).scalars().all()
    assert sorted(rows) == [0, 1]

    again = await scheduler.run_once()
    assert again.claimed == 0
    assert len(fake_executor.calls) == 2


async def test_failures_do_not_stop_the_tick(make_user, fake_executor, settings):
    await make_user(sui_wallet_address=WALLET, auto_claim=True, tasks_participated=1, donations_count=1)
    fake_executor.failure = TransportFailure("signer down", retryable=True)
    scheduler = AutoClaimScheduler(get_session_factory(), fake_executor, settings)

    summary = await scheduler.run_once()

    assert summary.failed == 2
    assert len(fake_executor.calls) == 2


async def test_start_and_stop(make_user, fake_executor, settings):
    await make_user(sui_wallet_address=WALLET, auto_claim=True, tasks_created=1)
    scheduler = AutoClaimScheduler(get_session_factory(), fake_executor, settings)

    task = asyncio.create_task(scheduler.start())
    for _ in range(500):
        if len(fake_executor.calls) == 2:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()
    await asyncio.wait_for(task, timeout=5)

    assert fake_executor.functions() == ["mint_achievement_direct_sponsored"] * 2


async def _wait_for_first_call(fake_executor) -> None:
    for _ in range(500):
        if fake_executor.calls:
            return
        await asyncio.sleep(0.01)


async def test_shutdown_lets_in_flight_claim_finish(db_session, make_user, fake_executor, settings):
    user, _ = await make_user(sui_wallet_address=WALLET, auto_claim=True, tasks_participated=1, donations_count=1)
    fake_executor.gate = asyncio.Event()
    scheduler = AutoClaimScheduler(get_session_factory(), fake_executor, settings)
    task = asyncio.create_task(scheduler.start())
    await _wait_for_first_call(fake_executor)

    shutdown = asyncio.create_task(scheduler.shutdown(task, timeout=5))
    await asyncio.sleep(0.05)
    assert not shutdown.done()

    fake_executor.gate.set()
    await shutdown

    assert task.done()
    assert not task.cancelled()
    rows = (
        await db_session.execute(select(AchievementClaim).where(AchievementClaim.user_id == user.id))
    ).scalars().all()
    assert [(r.achievement_type, r.nft_object_id) for r in rows] == [(0, f"0x{1:064x}")]
    # The second claimable kind is left for the next run.
    assert len(fake_executor.calls) == 1


async def test_shutdown_gives_up_after_timeout(make_user, fake_executor, settings):
    await make_user(sui_wallet_address=WALLET, auto_claim=True, tasks_participated=1)
    fake_executor.gate = asyncio.Event()
    scheduler = AutoClaimScheduler(get_session_factory(), fake_executor, settings)
    task = asyncio.create_task(scheduler.start())
    await _wait_for_first_call(fake_executor)

    await scheduler.shutdown(task, timeout=0.05)

    assert task.done()
