"""Achievement eligibility rules: kind values MUST match the Move package."""

import pytest

from agora.achievements.eligibility import (
    MIST_PER_SUI,
    AchievementKind,
    StatsSnapshot,
    achievement_name,
    claimable_kinds,
    eligible_kinds,
    is_eligible,
    parse_kind,
)
from agora.errors import InvalidAchievementKind

K = AchievementKind


class TestKindValues:
    def test_u8_values_are_stable(self):
        assert [int(k) for k in AchievementKind] == list(range(9))
        assert K.FIRST_TASK == 0
        assert K.GENEROUS_DONOR == 3
        assert K.LEGENDARY == 8

    def test_names(self):
        assert achievement_name(K.FIRST_TASK) == "First Task"
        assert achievement_name(K.SUPER_VOLUNTEER) == "Super Volunteer"


# (kind, stats below threshold, stats at threshold, stats above threshold)
THRESHOLDS = [
    (K.FIRST_DONATION, {"donations_count": 0}, {"donations_count": 1}, {"donations_count": 2}),
    (K.TASK_CREATOR, {"tasks_created": 0}, {"tasks_created": 1}, {"tasks_created": 2}),
    (
        K.GENEROUS_DONOR,
        {"total_donated": 10 * MIST_PER_SUI - 1},
        {"total_donated": 10 * MIST_PER_SUI},
        {"total_donated": 10 * MIST_PER_SUI + 1},
    ),
    (K.ACTIVE_PARTICIPANT, {"tasks_participated": 9}, {"tasks_participated": 10}, {"tasks_participated": 11}),
    (K.COMMUNITY_LEADER, {"tasks_created": 4}, {"tasks_created": 5}, {"tasks_created": 6}),
    (K.SUPPORTER, {"donations_count": 19}, {"donations_count": 20}, {"donations_count": 21}),
    (K.SUPER_VOLUNTEER, {"tasks_participated": 49}, {"tasks_participated": 50}, {"tasks_participated": 51}),
]


class TestThresholds:
    @pytest.mark.parametrize(("kind", "below", "at", "above"), THRESHOLDS)
    def test_boundaries(self, kind, below, at, above):
        assert not is_eligible(kind, StatsSnapshot(**below))
        assert is_eligible(kind, StatsSnapshot(**at))
        assert is_eligible(kind, StatsSnapshot(**above))

    def test_first_task_by_participation_or_creation(self):
        assert not is_eligible(K.FIRST_TASK, StatsSnapshot())
        assert is_eligible(K.FIRST_TASK, StatsSnapshot(tasks_participated=1))
        assert is_eligible(K.FIRST_TASK, StatsSnapshot(tasks_created=1))

    def test_legendary_needs_both_conditions(self):
        assert not is_eligible(K.LEGENDARY, StatsSnapshot(reputation_score=99, tasks_participated=20))
        assert not is_eligible(K.LEGENDARY, StatsSnapshot(reputation_score=100, tasks_participated=19))
        assert is_eligible(K.LEGENDARY, StatsSnapshot(reputation_score=100, tasks_participated=20))

    def test_generous_donor_exact_mist_values(self):
        assert not is_eligible(K.GENEROUS_DONOR, StatsSnapshot(total_donated=9_999_999_999))
        assert is_eligible(K.GENEROUS_DONOR, StatsSnapshot(total_donated=10_000_000_000))

    def test_total_donated_beyond_u64(self):
        assert is_eligible(K.GENEROUS_DONOR, StatsSnapshot(total_donated=2**70))


class TestEligibleKinds:
    def test_empty_stats(self):
        assert eligible_kinds(StatsSnapshot()) == []

    def test_single_participation_only_first_task(self):
        assert eligible_kinds(StatsSnapshot(tasks_participated=1)) == [K.FIRST_TASK]

    def test_ordered_by_kind_and_repeatable(self):
        stats = StatsSnapshot(
            tasks_created=5,
            tasks_participated=50,
            donations_count=20,
            total_donated=20 * MIST_PER_SUI,
            reputation_score=500,
        )
        first = eligible_kinds(stats)
        assert first == list(AchievementKind)
        assert eligible_kinds(stats) == first

    def test_claimable_excludes_claimed(self):
        stats = StatsSnapshot(tasks_created=1, donations_count=1)
        assert claimable_kinds(stats, set()) == [K.FIRST_TASK, K.FIRST_DONATION, K.TASK_CREATOR]
        assert claimable_kinds(stats, {0, 2}) == [K.FIRST_DONATION]


class TestParseKind:
    @pytest.mark.parametrize(("value", "expected"), [(0, K.FIRST_TASK), (8, K.LEGENDARY), ("3", K.GENEROUS_DONOR)])
    def test_accepts_ints_and_digit_strings(self, value, expected):
        assert parse_kind(value) is expected

    @pytest.mark.parametrize("value", [9, -1, 255, "nine", "", "²", 1.0, True, None, [0]])
    def test_rejects(self, value):
        with pytest.raises(InvalidAchievementKind):
            parse_kind(value)


def test_public_stats_view():
    public = StatsSnapshot(total_donated=10_000_000_000, votes_count=3).to_public()
    assert public["totalDonated"] == "10000000000"
    assert public["votesCount"] == 3
    assert set(public) == {
        "tasksCreated",
        "tasksParticipated",
        "votesCount",
        "donationsCount",
        "totalDonated",
        "reputationScore",
    }
