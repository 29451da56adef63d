"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

os.environ["AGORA_JWT_SECRET"] = "test-secret-for-agora-session-tokens-0123456789"
os.environ["AGORA_PACKAGE_ID"] = "0x" + "a" * 64
os.environ["AGORA_PROFILE_REGISTRY_ID"] = "0x" + "b" * 64
os.environ["AGORA_SPONSOR_ADDRESS"] = "0x" + "5" * 64
os.environ["AGORA_ADMIN_TOKEN"] = "test-admin-token"
os.environ["AGORA_LOG_FORMAT"] = "console"
os.environ["AGORA_AUTO_CLAIM_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from agora.auth.jwt import create_access_token, reset_keys  # noqa: E402
from agora.chain import executor as executor_module  # noqa: E402
from agora.chain.executor import TransactionExecutor  # noqa: E402
from agora.chain.results import ExecutionResult, ObjectChange  # noqa: E402
from agora.chain.transactions import MoveCall  # noqa: E402
from agora.config import Settings, get_settings  # noqa: E402
from agora.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from agora.db.base import Base  # noqa: E402
from agora.db.models import AchievementClaim, User  # noqa: E402
from agora.errors import DuplicateConstraintViolation  # noqa: E402
from agora.main import create_app  # noqa: E402
from agora.redis_client import get_redis  # noqa: E402
from agora.sponsored.orchestrator import SponsoredActionOrchestrator  # noqa: E402
from agora.sponsored.store import StatsDelta, StatsStore  # noqa: E402

PACKAGE_ID = os.environ["AGORA_PACKAGE_ID"]
SPONSOR_ADDRESS = os.environ["AGORA_SPONSOR_ADDRESS"]
WALLET = "0x" + "1" * 64
OTHER_WALLET = "0x" + "2" * 64
TASK_ID = "0x" + "c" * 64

_CREATED_TYPES = {
    "create_task_sponsored": "::task::Task",
    "create_profile_sponsored": "::profile::UserProfile",
    "mint_achievement_direct_sponsored": "::nft::AchievementNFT",
}


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeExecutor(TransactionExecutor):
    """Records move calls and answers with a successful result.

    ``failure`` is raised instead when set, after any ``queued_failures``
    are used up one call at a time. ``omit_created`` drops the
    created-object entry to simulate an unconfirmed creation. ``gate``, when
    set, holds every call until the event fires.
    """

    def __init__(self) -> None:
        self.calls: list[MoveCall] = []
        self.failure: Exception | None = None
        self.queued_failures: list[Exception] = []
        self.omit_created = False
        self.gate: asyncio.Event | None = None

    @property
    def sponsor_address(self) -> str:
        return SPONSOR_ADDRESS

    def functions(self) -> list[str]:
        return [c.function for c in self.calls]

    async def execute(self, call: MoveCall) -> ExecutionResult:
        self.calls.append(call)
        n = len(self.calls)
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.queued_failures:
            raise self.queued_failures.pop(0)
        if self.failure is not None:
            raise self.failure
        changes = [ObjectChange("mutated", "0x2::coin::Coin<0x2::sui::SUI>", "0x" + "9" * 64)]
        created_type = _CREATED_TYPES.get(call.function)
        if created_type and not self.omit_created:
            changes.append(ObjectChange("created", f"{PACKAGE_ID}{created_type}", f"0x{n:064x}"))
        return ExecutionResult(digest=f"Digest{n}", object_changes=changes)


class InMemoryStatsStore(StatsStore):
    """StatsStore over plain dicts; transient ORM instances as records."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.claims: dict[tuple[int, int], AchievementClaim] = {}
        self.fail_writes = False

    def add_user(self, **fields: Any) -> User:
        defaults: dict[str, Any] = {
            "email": f"user{len(self.users) + 1}@example.com",
            "username": f"user{len(self.users) + 1}",
            "tasks_created": 0,
            "tasks_participated": 0,
            "votes_count": 0,
            "donations_count": 0,
            "total_donated": 0,
            "reputation_score": 0,
            "auto_claim": False,
        }
        defaults.update(fields)
        user = User(id=len(self.users) + 1, **defaults)
        self.users[user.id] = user
        return user

    async def find_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def find_claim(self, user_id: int, achievement_type: int) -> AchievementClaim | None:
        return self.claims.get((user_id, achievement_type))

    async def list_claims(self, user_id: int) -> list[AchievementClaim]:
        return sorted(
            (c for (uid, _), c in self.claims.items() if uid == user_id),
            key=lambda c: c.achievement_type,
        )

    async def update_user_stats(self, user_id: int, delta: StatsDelta) -> None:
        if self.fail_writes:
            msg = "database unavailable"
            raise RuntimeError(msg)
        user = self.users.get(user_id)
        if user is None:
            msg = f"User {user_id} not found while updating stats"
            raise LookupError(msg)
        for name, amount in delta.items():
            setattr(user, name, getattr(user, name) + amount)

    async def set_profile_id(self, user_id: int, profile_id: str) -> None:
        if self.fail_writes:
            msg = "database unavailable"
            raise RuntimeError(msg)
        self.users[user_id].profile_id = profile_id

    async def insert_claim(
        self,
        user_id: int,
        achievement_type: int,
        nft_object_id: str | None,
        digest: str,
        image_url: str | None,
    ) -> AchievementClaim:
        if self.fail_writes:
            msg = "database unavailable"
            raise RuntimeError(msg)
        key = (user_id, achievement_type)
        if key in self.claims:
            raise DuplicateConstraintViolation(user_id, achievement_type)
        claim = AchievementClaim(
            user_id=user_id,
            achievement_type=achievement_type,
            nft_object_id=nft_object_id,
            digest=digest,
            image_url=image_url,
            created_at=datetime.now(timezone.utc),
        )
        self.claims[key] = claim
        return claim

    async def users_pending_profile(self) -> list[User]:
        return [u for u in self.users.values() if u.profile_id is None and u.wallet_address]

    async def users_for_auto_claim(self) -> list[User]:
        return [u for u in self.users.values() if u.auto_claim and u.wallet_address]


def make_fake_redis() -> AsyncMock:
    """AsyncMock Redis backed by a dict for get/set/delete."""
    data: dict[str, str] = {}
    redis = AsyncMock()
    redis.data = data
    redis.get.side_effect = lambda key: data.get(key)
    redis.set.side_effect = lambda key, value, ex=None: data.__setitem__(key, value)
    redis.delete.side_effect = lambda *keys: sum(1 for k in keys if data.pop(k, None) is not None)
    redis.ping.return_value = True
    return redis


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_settings() -> None:
    get_settings.cache_clear()
    reset_keys()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def memory_store() -> InMemoryStatsStore:
    return InMemoryStatsStore()


@pytest.fixture
def orchestrator(
    memory_store: InMemoryStatsStore, fake_executor: FakeExecutor, settings: Settings
) -> SponsoredActionOrchestrator:
    return SponsoredActionOrchestrator(memory_store, fake_executor, settings)


@pytest.fixture
def fake_redis() -> AsyncMock:
    return make_fake_redis()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    tmp_path: Any,
    monkeypatch: pytest.MonkeyPatch,
    fake_executor: FakeExecutor,
    fake_redis: AsyncMock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against a fresh SQLite database, fake executor and fake Redis."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'agora.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    monkeypatch.setattr(executor_module, "_executor", fake_executor)

    app = create_app()
    app.dependency_overrides[get_redis] = lambda: fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """Direct session on the client's database, for setup and assertions."""
    async with get_session_factory()() as session:
        yield session


UserFactory = Callable[..., Awaitable[tuple[User, dict[str, str]]]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> UserFactory:
    """Insert a user and return it with bearer auth headers."""
    counter = 0

    async def _make(**fields: Any) -> tuple[User, dict[str, str]]:
        nonlocal counter
        counter += 1
        values: dict[str, Any] = {
            "email": f"member{counter}@example.com",
            "username": f"member{counter}",
            "intra_id": str(1000 + counter),
        }
        values.update(fields)
        user = User(**values)
        db_session.add(user)
        await db_session.commit()
        token = create_access_token(user.id, user.email)
        return user, {"Authorization": f"Bearer {token}"}

    return _make
