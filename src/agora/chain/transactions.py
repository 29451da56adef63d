"""Move-call descriptors for the sponsored entry points.

Argument order and types mirror the Move function signatures exactly; the
signer service turns a descriptor into a programmable transaction. Integer
values are serialised as decimal strings so u64 amounts survive JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from agora.achievements.eligibility import AchievementKind, StatsSnapshot
from agora.chain.address import normalize_sui_address

U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1

# Types reported in objectChanges for objects created by the entry points.
TASK_OBJECT_TYPE = "::task::Task"
PROFILE_OBJECT_TYPE = "::profile::UserProfile"
NFT_OBJECT_TYPE = "::nft::AchievementNFT"


@dataclass(frozen=True)
class ObjectArg:
    """Reference to an existing on-chain object (shared or owned)."""

    object_id: str

    def to_payload(self) -> dict[str, Any]:
        return {"kind": "object", "objectId": self.object_id}


@dataclass(frozen=True)
class PureArg:
    """BCS-encodable pure value."""

    type: str
    value: Any

    def to_payload(self) -> dict[str, Any]:
        value = str(self.value) if self.type in ("u8", "u64") else self.value
        return {"kind": "pure", "type": self.type, "value": value}


def u8(value: int) -> PureArg:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U8_MAX:
        msg = f"u8 out of range: {value!r}"
        raise ValueError(msg)
    return PureArg("u8", value)


def u64(value: int) -> PureArg:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        msg = f"u64 out of range: {value!r}"
        raise ValueError(msg)
    return PureArg("u64", value)


def address(value: str) -> PureArg:
    return PureArg("address", normalize_sui_address(value))


def string(value: str) -> PureArg:
    return PureArg("string", value)


def obj(object_id: str) -> ObjectArg:
    return ObjectArg(normalize_sui_address(object_id))


@dataclass(frozen=True)
class MoveCall:
    """A single sponsored move call."""

    package_id: str
    module: str
    function: str
    arguments: tuple[ObjectArg | PureArg, ...] = field(default_factory=tuple)

    @property
    def target(self) -> str:
        return f"{self.package_id}::{self.module}::{self.function}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "arguments": [arg.to_payload() for arg in self.arguments],
        }


# ---------------------------------------------------------------------------
# Entry point builders
# ---------------------------------------------------------------------------


def create_profile_call(
    package_id: str,
    registry_id: str,
    owner: str,
    intra_id: str,
    email: str,
    display_name: str,
) -> MoveCall:
    """profile::create_profile_sponsored(registry, address, intraId, email, displayName)"""
    return MoveCall(
        package_id,
        "profile",
        "create_profile_sponsored",
        (obj(registry_id), address(owner), string(intra_id), string(email), string(display_name)),
    )


def mint_achievement_call(
    package_id: str,
    owner: str,
    kind: AchievementKind,
    stats: StatsSnapshot,
) -> MoveCall:
    """nft::mint_achievement_direct_sponsored(address, type:u8, participated, donations, donated, reputation)"""
    return MoveCall(
        package_id,
        "nft",
        "mint_achievement_direct_sponsored",
        (
            address(owner),
            u8(int(kind)),
            u64(stats.tasks_participated),
            u64(stats.donations_count),
            u64(min(stats.total_donated, U64_MAX)),
            u64(stats.reputation_score),
        ),
    )


def create_task_call(
    package_id: str,
    creator: str,
    title: str,
    description: str,
    task_type: int,
    budget_amount: int,
    participant_limit: int,
    voting_end_ms: int,
) -> MoveCall:
    """task::create_task_sponsored(creator, title, description, type:u8, budget:u64, limit:u64, end_ms:u64)"""
    return MoveCall(
        package_id,
        "task",
        "create_task_sponsored",
        (
            address(creator),
            string(title),
            string(description),
            u8(task_type),
            u64(budget_amount),
            u64(participant_limit),
            u64(voting_end_ms),
        ),
    )


def vote_task_call(package_id: str, task_id: str, voter: str, vote_type: int) -> MoveCall:
    return MoveCall(package_id, "task", "vote_task_sponsored", (obj(task_id), address(voter), u8(vote_type)))


def join_task_call(package_id: str, task_id: str, participant: str) -> MoveCall:
    return MoveCall(package_id, "task", "join_task_sponsored", (obj(task_id), address(participant)))


def record_donation_call(package_id: str, task_id: str, donor: str, amount_mist: int, message: str) -> MoveCall:
    return MoveCall(
        package_id,
        "task",
        "record_donation_sponsored",
        (obj(task_id), address(donor), u64(amount_mist), string(message)),
    )


def comment_task_call(package_id: str, task_id: str, commenter: str, content: str) -> MoveCall:
    return MoveCall(
        package_id,
        "task",
        "comment_task_sponsored",
        (obj(task_id), address(commenter), string(content)),
    )
