"""Tests for the weeding priority list."""

from datetime import UTC, date, datetime, timedelta

import pytest

from policy_weeder.services.weeding_service import UNKNOWN_AGE_DAYS, WeedingService, days_since_modified

TODAY = date(2024, 6, 30)
REPORT_ONLY = "enabledForReportingButNotEnforced"


def days_ago(days: int) -> datetime:
    return datetime.combine(TODAY - timedelta(days=days), datetime.min.time(), tzinfo=UTC)


@pytest.fixture
def weeding_service():
    """Create weeding service."""
    return WeedingService(stale_after_days=30)


class TestPrioritize:
    """Test tier construction and ordering."""

    def test_merge_tier_lists_members(self, weeding_service, make_group):
        """Members of a group at 85 or above are merge candidates."""
        entries = weeding_service.prioritize([], [make_group("main", ["m1", "m2"], 90.0)], TODAY)

        assert [(e.policy_id, e.priority) for e in entries] == [("m1", 1), ("m2", 1)]
        assert entries[0].recommended_action == "Merge into 'main'"
        assert entries[0].reason == "90.0% similar to 'main' (group average 90.0%)"
        assert (entries[0].impact, entries[0].effort) == ("Low", "Low")

    def test_review_tier(self, weeding_service, make_group):
        """Groups between 75 and 85 produce review entries."""
        entries = weeding_service.prioritize([], [make_group("main", ["m1"], 84.9)], TODAY)

        assert len(entries) == 1
        assert entries[0].priority == 2
        assert entries[0].recommended_action == "Review for merge with 'main'"
        assert (entries[0].impact, entries[0].effort) == ("Medium", "Medium")

    def test_low_similarity_groups_are_not_weeded(self, weeding_service, make_group):
        """Clarify-purpose groups do not feed the weeding list."""
        assert weeding_service.prioritize([], [make_group("main", ["m1"], 74.9)], TODAY) == []

    def test_disabled_tier(self, weeding_service, make_policy):
        """Every disabled policy is listed for deletion."""
        policies = [make_policy("off", state="disabled"), make_policy("on")]

        entries = weeding_service.prioritize(policies, [], TODAY)

        assert len(entries) == 1
        assert entries[0].policy_id == "off"
        assert entries[0].priority == 3
        assert entries[0].reason == "Policy is disabled"
        assert entries[0].recommended_action == "Delete if no longer required"
        assert (entries[0].impact, entries[0].effort) == ("None", "Low")

    def test_stale_report_only_boundary(self, weeding_service, make_policy):
        """Thirty days is not stale, forty-five is."""
        policies = [
            make_policy("fresh", state=REPORT_ONLY, modified=days_ago(30)),
            make_policy("stale", state=REPORT_ONLY, modified=days_ago(45)),
        ]

        entries = weeding_service.prioritize(policies, [], TODAY)

        assert [e.policy_id for e in entries] == ["stale"]
        assert entries[0].priority == 4
        assert entries[0].reason == "Report-only and unmodified for 45 days"
        assert entries[0].recommended_action == "Enable or delete"
        assert (entries[0].impact, entries[0].effort) == ("Medium", "Low")

    def test_report_only_without_date_is_stale(self, weeding_service, make_policy):
        """A missing modification date counts as very old."""
        entries = weeding_service.prioritize([make_policy("undated", state=REPORT_ONLY)], [], TODAY)

        assert len(entries) == 1
        assert entries[0].reason == "Report-only with no recorded modification date"

    def test_configurable_staleness(self, make_policy):
        """The staleness window is configurable."""
        service = WeedingService(stale_after_days=7)
        policies = [make_policy("p", state=REPORT_ONLY, modified=days_ago(10))]

        assert len(service.prioritize(policies, [], TODAY)) == 1

    def test_ordered_by_priority_then_name(self, weeding_service, make_policy, make_group):
        """Entries sort by tier, then by display name."""
        policies = [
            make_policy("z-off", "Zulu", state="disabled"),
            make_policy("a-off", "Alpha", state="disabled"),
            make_policy("report", "Mike", state=REPORT_ONLY),
        ]
        groups = [make_group("main", ["review"], 80.0), make_group("main2", ["merge"], 95.0)]

        entries = weeding_service.prioritize(policies, groups, TODAY)

        assert [(e.priority, e.display_name) for e in entries] == [
            (1, "merge"),
            (2, "review"),
            (3, "Alpha"),
            (3, "Zulu"),
            (4, "Mike"),
        ]

    def test_policy_can_appear_in_several_tiers(self, weeding_service, make_policy, make_group):
        """A disabled group member is both a merge candidate and a disabled policy."""
        policies = [make_policy("main"), make_policy("dup", state="disabled")]
        groups = [make_group("main", ["dup"], 92.0)]

        entries = weeding_service.prioritize(policies, groups, TODAY)

        assert [(e.policy_id, e.priority) for e in entries] == [("dup", 1), ("dup", 3)]

    def test_main_policy_is_not_listed(self, weeding_service, make_policy, make_group):
        """The policy that absorbs a group is kept."""
        entries = weeding_service.prioritize([make_policy("main")], [make_group("main", ["m1"], 95.0)], TODAY)

        assert "main" not in [e.policy_id for e in entries]


class TestDaysSinceModified:
    """Test policy age calculation."""

    def test_dated_policy(self, make_policy):
        assert days_since_modified(make_policy("p", modified=days_ago(12)), TODAY) == 12

    def test_undated_policy(self, make_policy):
        assert days_since_modified(make_policy("p"), TODAY) == UNKNOWN_AGE_DAYS
