"""Achievement eligibility rules.

The kind values are the ``achievementType: u8`` passed to
``nft::mint_achievement_direct_sponsored`` and MUST match the Move package.
Pure functions only; no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import IntEnum

from agora.errors import InvalidAchievementKind

MIST_PER_SUI = 1_000_000_000


class AchievementKind(IntEnum):
    FIRST_TASK = 0
    FIRST_DONATION = 1
    TASK_CREATOR = 2
    GENEROUS_DONOR = 3
    ACTIVE_PARTICIPANT = 4
    COMMUNITY_LEADER = 5
    SUPPORTER = 6
    SUPER_VOLUNTEER = 7
    LEGENDARY = 8


ACHIEVEMENT_NAMES: dict[AchievementKind, str] = {
    AchievementKind.FIRST_TASK: "First Task",
    AchievementKind.FIRST_DONATION: "First Donation",
    AchievementKind.TASK_CREATOR: "Task Creator",
    AchievementKind.GENEROUS_DONOR: "Generous Donor",
    AchievementKind.ACTIVE_PARTICIPANT: "Active Participant",
    AchievementKind.COMMUNITY_LEADER: "Community Leader",
    AchievementKind.SUPPORTER: "Supporter",
    AchievementKind.SUPER_VOLUNTEER: "Super Volunteer",
    AchievementKind.LEGENDARY: "Legendary",
}


@dataclass(frozen=True)
class StatsSnapshot:
    """A user's counters at one point in time. ``total_donated`` is in MIST."""

    tasks_created: int = 0
    tasks_participated: int = 0
    votes_count: int = 0
    donations_count: int = 0
    total_donated: int = 0
    reputation_score: int = 0

    @classmethod
    def from_user(cls, user: object) -> StatsSnapshot:
        return cls(
            tasks_created=user.tasks_created or 0,  # type: ignore[attr-defined]
            tasks_participated=user.tasks_participated or 0,  # type: ignore[attr-defined]
            votes_count=user.votes_count or 0,  # type: ignore[attr-defined]
            donations_count=user.donations_count or 0,  # type: ignore[attr-defined]
            total_donated=int(user.total_donated or 0),  # type: ignore[attr-defined]
            reputation_score=user.reputation_score or 0,  # type: ignore[attr-defined]
        )

    def to_public(self) -> dict[str, int | str]:
        """camelCase view for API responses; totalDonated as a decimal string."""
        data = asdict(self)
        return {
            "tasksCreated": data["tasks_created"],
            "tasksParticipated": data["tasks_participated"],
            "votesCount": data["votes_count"],
            "donationsCount": data["donations_count"],
            "totalDonated": str(data["total_donated"]),
            "reputationScore": data["reputation_score"],
        }


RULES: dict[AchievementKind, Callable[[StatsSnapshot], bool]] = {
    AchievementKind.FIRST_TASK: lambda s: s.tasks_participated >= 1 or s.tasks_created >= 1,
    AchievementKind.FIRST_DONATION: lambda s: s.donations_count >= 1,
    AchievementKind.TASK_CREATOR: lambda s: s.tasks_created >= 1,
    AchievementKind.GENEROUS_DONOR: lambda s: s.total_donated >= 10 * MIST_PER_SUI,
    AchievementKind.ACTIVE_PARTICIPANT: lambda s: s.tasks_participated >= 10,
    AchievementKind.COMMUNITY_LEADER: lambda s: s.tasks_created >= 5,
    AchievementKind.SUPPORTER: lambda s: s.donations_count >= 20,
    AchievementKind.SUPER_VOLUNTEER: lambda s: s.tasks_participated >= 50,
    AchievementKind.LEGENDARY: lambda s: s.reputation_score >= 100 and s.tasks_participated >= 20,
}


def parse_kind(value: object) -> AchievementKind:
    """Coerce a client-supplied value into an AchievementKind.

    Accepts ints and digit strings. Booleans are rejected even though they
    are ints.

    Raises:
        InvalidAchievementKind: For anything else or an unknown value.
    """
    if isinstance(value, bool):
        raise InvalidAchievementKind(value)
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        candidate: object = int(value.strip())
    else:
        candidate = value
    if not isinstance(candidate, int):
        raise InvalidAchievementKind(value)
    try:
        return AchievementKind(candidate)
    except ValueError:
        raise InvalidAchievementKind(value) from None


def is_eligible(kind: AchievementKind, stats: StatsSnapshot) -> bool:
    return RULES[kind](stats)


def eligible_kinds(stats: StatsSnapshot) -> list[AchievementKind]:
    """All kinds the snapshot qualifies for, ordered by kind value."""
    return [kind for kind in AchievementKind if RULES[kind](stats)]


def claimable_kinds(stats: StatsSnapshot, claimed: set[int]) -> list[AchievementKind]:
    """Eligible kinds that have not been claimed yet."""
    return [kind for kind in eligible_kinds(stats) if int(kind) not in claimed]


def achievement_name(kind: AchievementKind) -> str:
    return ACHIEVEMENT_NAMES.get(kind, "Achievement")
