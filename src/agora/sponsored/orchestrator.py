"""Sponsored action orchestration.

Every action runs the same pipeline:

    received -> validated -> (guarded) -> submitted -> confirmed | rejected

Validation and guard failures never reach the executor. Statistics are
written only after the executor confirmed the transaction, and a failure
at that point is reported as PersistenceInconsistency because chain and
database have diverged. Nothing is retried here; callers resubmit.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from agora.achievements.eligibility import (
    AchievementKind,
    StatsSnapshot,
    achievement_name,
    is_eligible,
    parse_kind,
)
from agora.chain import transactions as tx
from agora.chain.address import is_sui_address
from agora.chain.executor import TransactionExecutor
from agora.chain.results import ExecutionResult, find_created_object
from agora.config import Settings
from agora.db.models import MIST_TOTAL_MAX, User
from agora.errors import (
    AgoraError,
    AlreadyClaimed,
    CreationNotConfirmed,
    DuplicateConstraintViolation,
    NotEligible,
    PersistenceInconsistency,
    ProfileAlreadyExists,
    TransportFailure,
    UserNotFound,
    ValidationError,
)
from agora.sponsored.store import StatsDelta, StatsStore

logger = structlog.get_logger()

TASK_TYPES = frozenset({0, 1})  # 0 = participation, 1 = budgeted proposal
VOTE_TYPES = frozenset({0, 1})  # 0 = no, 1 = yes


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionResult:
    digest: str


@dataclass(frozen=True)
class TaskCreated:
    task_id: str
    digest: str
    creator: str


@dataclass(frozen=True)
class DonationRecorded:
    digest: str
    sponsor_address: str


@dataclass(frozen=True)
class ProfileCreated:
    profile_id: str
    digest: str


@dataclass(frozen=True)
class AchievementClaimed:
    digest: str
    nft_id: str
    kind: AchievementKind
    name: str


@dataclass
class MigrationReport:
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def migrated(self) -> int:
        return sum(1 for r in self.results if r["status"] == "success")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r["status"] != "success")


# ---------------------------------------------------------------------------
# Input checks
# ---------------------------------------------------------------------------


def _blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def _as_uint(value: object, maximum: int = tx.U64_MAX) -> int | None:
    """Parse a non-negative integer (int or ASCII digit string). Floats are refused."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        value = int(text)
    if isinstance(value, int) and 0 <= value <= maximum:
        return value
    return None


def _epoch_ms(value: object) -> int | None:
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class SponsoredActionOrchestrator:
    """Validates, submits and accounts for sponsored actions.

    Holds no per-request state; one instance may serve one request or many.
    """

    def __init__(self, store: StatsStore, executor: TransactionExecutor, settings: Settings) -> None:
        self.store = store
        self.executor = executor
        self.settings = settings

    # -- shared steps --------------------------------------------------------

    async def _load_user(self, user_id: int) -> User:
        user = await self.store.find_user(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    @staticmethod
    def _require_wallet(user: User) -> str:
        wallet = user.wallet_address
        if not wallet:
            raise ValidationError(["walletAddress"], "User wallet address not found. Please bind a wallet first.")
        return wallet

    @staticmethod
    def _require_task_id(task_id: object) -> str:
        if not is_sui_address(task_id):
            raise ValidationError(["taskId"])
        return str(task_id)

    async def _submit(self, action: str, call: tx.MoveCall) -> ExecutionResult:
        logger.info("sponsored_action_submitting", action=action, target=call.target)
        try:
            return await self.executor.execute(call)
        except AgoraError:
            raise
        except TimeoutError as e:
            logger.error("sponsored_action_timeout", action=action, target=call.target)
            raise TransportFailure(f"Executor timed out: {call.target}", retryable=True) from e
        except Exception as e:
            logger.error("sponsored_action_executor_error", action=action, error=str(e), exc_info=e)
            raise TransportFailure(f"Executor failed: {e}") from e

    @staticmethod
    def _confirm_created(result: ExecutionResult, type_suffix: str) -> str:
        object_id = find_created_object(result, type_suffix)
        if object_id is None:
            logger.error("creation_not_confirmed", expected_type=type_suffix, digest=result.digest)
            raise CreationNotConfirmed(type_suffix, result.digest)
        return object_id

    @staticmethod
    async def _persist(action: str, digest: str, write: Awaitable[Any]) -> Any:
        try:
            return await write
        except DuplicateConstraintViolation:
            raise
        except Exception as e:
            logger.critical(
                "persistence_inconsistency",
                action=action,
                digest=digest,
                error=str(e),
                exc_info=e,
            )
            raise PersistenceInconsistency(action, digest, str(e)) from e

    async def _apply(self, action: str, user_id: int, digest: str, delta: StatsDelta) -> None:
        await self._persist(action, digest, self.store.update_user_stats(user_id, delta))
        logger.info("sponsored_action_confirmed", action=action, user_id=user_id, digest=digest)

    # -- profile -------------------------------------------------------------

    async def create_profile(
        self,
        user_id: int,
        intra_id: str | None = None,
        email: str | None = None,
        display_name: str | None = None,
    ) -> ProfileCreated:
        """Create the on-chain UserProfile, falling back to stored identity fields."""
        user = await self._load_user(user_id)
        if user.profile_id:
            raise ProfileAlreadyExists(user.profile_id)

        intra_value = intra_id or (str(user.intra_id) if user.intra_id else "")
        email_value = email or user.email or ""
        name_value = display_name or user.username or ""
        missing = [
            name
            for name, value in (("intraId", intra_value), ("email", email_value), ("displayName", name_value))
            if _blank(value)
        ]
        if missing:
            raise ValidationError(missing)
        wallet = self._require_wallet(user)

        call = tx.create_profile_call(
            self.settings.package_id,
            self.settings.profile_registry_id,
            wallet,
            intra_value,
            email_value,
            name_value,
        )
        result = await self._submit("create_profile", call)
        profile_id = self._confirm_created(result, tx.PROFILE_OBJECT_TYPE)
        await self._persist("create_profile", result.digest, self.store.set_profile_id(user_id, profile_id))
        logger.info("profile_created", user_id=user_id, profile_id=profile_id, digest=result.digest)
        return ProfileCreated(profile_id=profile_id, digest=result.digest)

    async def migrate_all(self) -> MigrationReport:
        """Create profiles for every wallet-bound user without one.

        Each user is independent; one failure never stops the batch.
        """
        report = MigrationReport()
        users = await self.store.users_pending_profile()
        targets = [(u.id, u.email) for u in users]
        for user_id, email in targets:
            entry: dict[str, Any] = {"userId": user_id, "email": email}
            try:
                created = await self.create_profile(user_id)
            except CreationNotConfirmed:
                entry.update(status="failed", error="No profile object found")
            except Exception as e:  # noqa: BLE001
                logger.warning("profile_migration_failed", user_id=user_id, error=str(e))
                entry.update(status="error", error=str(e))
            else:
                entry.update(status="success", profileId=created.profile_id)
            report.results.append(entry)

        logger.info("profile_migration_finished", migrated=report.migrated, failed=report.failed)
        return report

    # -- tasks ---------------------------------------------------------------

    async def create_task(
        self,
        user_id: int,
        *,
        title: object,
        description: object,
        task_type: object,
        budget_amount: object,
        participant_limit: object,
        voting_end_date: object,
    ) -> TaskCreated:
        bad: list[str] = []
        if _blank(title):
            bad.append("title")
        if _blank(description):
            bad.append("description")
        if isinstance(task_type, bool) or not isinstance(task_type, int) or task_type not in TASK_TYPES:
            bad.append("taskType")
        budget = _as_uint(budget_amount)
        if budget is None:
            bad.append("budgetAmount")
        limit = _as_uint(participant_limit)
        if limit is None:
            bad.append("participantLimit")
        end_ms = _epoch_ms(voting_end_date)
        if end_ms is None or end_ms <= int(datetime.now(timezone.utc).timestamp() * 1000):
            bad.append("votingEndDate")
        if bad:
            raise ValidationError(bad)

        user = await self._load_user(user_id)
        wallet = self._require_wallet(user)

        call = tx.create_task_call(
            self.settings.package_id,
            wallet,
            str(title).strip(),
            str(description).strip(),
            int(task_type),  # type: ignore[call-overload]
            budget,  # type: ignore[arg-type]
            limit,  # type: ignore[arg-type]
            end_ms,  # type: ignore[arg-type]
        )
        result = await self._submit("create_task", call)
        task_id = self._confirm_created(result, tx.TASK_OBJECT_TYPE)
        await self._apply(
            "create_task",
            user_id,
            result.digest,
            StatsDelta(tasks_created=1, reputation_score=self.settings.reputation_create_task),
        )
        return TaskCreated(task_id=task_id, digest=result.digest, creator=wallet)

    async def vote(self, user_id: int, task_id: object, vote_type: object) -> ActionResult:
        if isinstance(vote_type, bool) or not isinstance(vote_type, int) or vote_type not in VOTE_TYPES:
            raise ValidationError(["voteType"], "Vote type must be 0 (no) or 1 (yes)")
        task = self._require_task_id(task_id)
        user = await self._load_user(user_id)
        wallet = self._require_wallet(user)

        call = tx.vote_task_call(self.settings.package_id, task, wallet, int(vote_type))  # type: ignore[call-overload]
        result = await self._submit("vote", call)
        await self._apply(
            "vote",
            user_id,
            result.digest,
            StatsDelta(votes_count=1, reputation_score=self.settings.reputation_vote),
        )
        return ActionResult(digest=result.digest)

    async def join(self, user_id: int, task_id: object) -> ActionResult:
        task = self._require_task_id(task_id)
        user = await self._load_user(user_id)
        wallet = self._require_wallet(user)

        result = await self._submit("join", tx.join_task_call(self.settings.package_id, task, wallet))
        await self._apply(
            "join",
            user_id,
            result.digest,
            StatsDelta(tasks_participated=1, reputation_score=self.settings.reputation_join),
        )
        return ActionResult(digest=result.digest)

    async def comment(self, user_id: int, task_id: object, content: object) -> ActionResult:
        bad = [] if not _blank(content) else ["content"]
        if not is_sui_address(task_id):
            bad.insert(0, "taskId")
        if bad:
            raise ValidationError(bad)
        user = await self._load_user(user_id)
        wallet = self._require_wallet(user)

        call = tx.comment_task_call(self.settings.package_id, str(task_id), wallet, str(content).strip())
        result = await self._submit("comment", call)
        logger.info("sponsored_action_confirmed", action="comment", user_id=user_id, digest=result.digest)
        return ActionResult(digest=result.digest)

    async def donate(
        self,
        user_id: int,
        task_id: object,
        amount: object,
        message: object = None,
        *,
        community: bool = False,
    ) -> DonationRecorded:
        """Record a donation in MIST. ``community`` selects the higher reputation reward."""
        bad: list[str] = []
        if not is_sui_address(task_id):
            bad.append("taskId")
        amount_mist = _as_uint(amount)
        if amount_mist is None or amount_mist == 0:
            bad.append("amount")
        if message is not None and not isinstance(message, str):
            bad.append("message")
        if bad:
            raise ValidationError(bad)
        user = await self._load_user(user_id)
        wallet = self._require_wallet(user)
        if int(user.total_donated or 0) + amount_mist > MIST_TOTAL_MAX:  # type: ignore[operator]
            raise ValidationError(["amount"], "Donation would overflow the recorded total")

        call = tx.record_donation_call(
            self.settings.package_id,
            str(task_id),
            wallet,
            amount_mist,  # type: ignore[arg-type]
            message or "",  # type: ignore[arg-type]
        )
        result = await self._submit("donate", call)
        reward = (
            self.settings.reputation_community_donation if community else self.settings.reputation_donation
        )
        await self._apply(
            "donate",
            user_id,
            result.digest,
            StatsDelta(donations_count=1, total_donated=amount_mist, reputation_score=reward),  # type: ignore[arg-type]
        )
        return DonationRecorded(digest=result.digest, sponsor_address=self.executor.sponsor_address)

    # -- achievements --------------------------------------------------------

    async def claim_achievement(self, user_id: int, achievement_type: object) -> AchievementClaimed:
        """Mint an achievement NFT once per (user, kind)."""
        if achievement_type is None:
            raise ValidationError(["achievementType"], "Achievement type is required")
        kind = parse_kind(achievement_type)

        user = await self._load_user(user_id)
        existing = await self.store.find_claim(user_id, int(kind))
        if existing is not None:
            raise AlreadyClaimed(int(kind), existing.nft_object_id)
        wallet = self._require_wallet(user)

        stats = StatsSnapshot.from_user(user)
        if not is_eligible(kind, stats):
            raise NotEligible(int(kind), stats.to_public())

        call = tx.mint_achievement_call(self.settings.package_id, wallet, kind, stats)
        result = await self._submit("claim_achievement", call)
        nft_id = self._confirm_created(result, tx.NFT_OBJECT_TYPE)

        image_url = self.settings.achievement_image_url.format(kind=int(kind))
        try:
            await self._persist(
                "claim_achievement",
                result.digest,
                self.store.insert_claim(user_id, int(kind), nft_id, result.digest, image_url),
            )
        except DuplicateConstraintViolation as e:
            # Lost a race with a concurrent claim for the same kind.
            logger.warning(
                "duplicate_claim_minted",
                user_id=user_id,
                achievement_type=int(kind),
                digest=result.digest,
                nft_id=nft_id,
            )
            winner = await self.store.find_claim(user_id, int(kind))
            raise AlreadyClaimed(int(kind), winner.nft_object_id if winner else None) from e

        logger.info("claim_persisted", user_id=user_id, achievement_type=int(kind), nft_id=nft_id)
        return AchievementClaimed(digest=result.digest, nft_id=nft_id, kind=kind, name=achievement_name(kind))
