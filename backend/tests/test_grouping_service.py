"""Tests for greedy overlap grouping."""

import pytest

from policy_weeder.core.config import AnalysisConfig
from policy_weeder.models.analysis import WeightingMode
from policy_weeder.services.comparison_service import ComparisonService
from policy_weeder.services.grouping_service import GroupingService


class RecordingComparisonService(ComparisonService):
    """Comparison service that remembers every pair it scored."""

    def __init__(self, mode: WeightingMode):
        super().__init__(mode)
        self.pairs = []

    def compare(self, policy_a, policy_b):
        self.pairs.append((policy_a.id, policy_b.id))
        return super().compare(policy_a, policy_b)


@pytest.fixture
def comparison_service():
    """Weighted comparison service."""
    return ComparisonService(WeightingMode.WEIGHTED)


@pytest.fixture
def chained_policies(make_policy):
    """Three policies where A~B and B~C clear 85 but A~C does not.

    With users and applications equal, locations unset and no sessions the
    weighted similarity is 75 + 0.2 * controls Jaccard:
    A-B 88.3, B-C 85.0, A-C 80.0.
    """
    return [
        make_policy("a", users=["u1"], applications=["app1"], controls=["mfa", "compliantDevice"]),
        make_policy("b", users=["u1"], applications=["app1"], controls=["mfa", "compliantDevice", "domainJoinedDevice"]),
        make_policy("c", users=["u1"], applications=["app1"], controls=["mfa", "domainJoinedDevice", "approvedApplication"]),
    ]


class TestGroupPolicies:
    """Test the greedy grouping pass."""

    def test_identical_policies_form_one_group(self, comparison_service, make_policy):
        """Two All/All/MFA policies group at 92.0."""
        policies = [
            make_policy("p1", "Policy One", users=["All"], applications=["All"], controls=["mfa"]),
            make_policy("p2", "Policy Two", users=["All"], applications=["All"], controls=["mfa"]),
        ]
        service = GroupingService(comparison_service, threshold=70)

        groups = service.group_policies(policies)

        assert len(groups) == 1
        assert groups[0].main_policy.id == "p1"
        assert groups[0].main_policy.display_name == "Policy One"
        assert [member.policy.id for member in groups[0].members] == ["p2"]
        assert groups[0].average_similarity == 92.0

    def test_grouping_is_not_transitive(self, comparison_service, chained_policies):
        """C stays ungrouped even though it clears the threshold against B."""
        service = GroupingService(comparison_service, threshold=85)

        sims = {
            ("a", "b"): comparison_service.compare(chained_policies[0], chained_policies[1]).similarity,
            ("b", "c"): comparison_service.compare(chained_policies[1], chained_policies[2]).similarity,
            ("a", "c"): comparison_service.compare(chained_policies[0], chained_policies[2]).similarity,
        }
        assert sims == {("a", "b"): 88.3, ("b", "c"): 85.0, ("a", "c"): 80.0}

        groups = service.group_policies(chained_policies)

        assert len(groups) == 1
        assert groups[0].policy_ids == ["a", "b"]
        assert groups[0].average_similarity == 88.3

    def test_input_order_decides_main_policy(self, comparison_service, chained_policies):
        """Starting from B pulls both A and C into its group."""
        service = GroupingService(comparison_service, threshold=85)
        reordered = [chained_policies[1], chained_policies[0], chained_policies[2]]

        groups = service.group_policies(reordered)

        assert len(groups) == 1
        assert groups[0].policy_ids == ["b", "a", "c"]

    def test_threshold_is_inclusive(self, comparison_service, chained_policies):
        """A similarity equal to the threshold joins the group."""
        service = GroupingService(comparison_service, threshold=85)

        groups = service.group_policies(chained_policies[1:])

        assert groups[0].members[0].overlap.similarity == 85.0

    def test_policies_appear_in_at_most_one_group(self, comparison_service, make_policy):
        """Groups are disjoint and each has at least one member."""
        policies = [
            make_policy(f"p{i}", users=["All"] if i % 2 else ["u1"], applications=["All"], controls=["mfa"])
            for i in range(8)
        ]
        service = GroupingService(comparison_service, threshold=70)

        groups = service.group_policies(policies)

        seen = [policy_id for group in groups for policy_id in group.policy_ids]
        assert len(seen) == len(set(seen))
        assert all(group.member_count >= 1 for group in groups)

    def test_no_groups_below_threshold(self, comparison_service, make_policy):
        """Unrelated policies produce no groups."""
        policies = [
            make_policy("p1", users=["u1"], applications=["app1"], controls=["mfa"]),
            make_policy("p2", users=["u2"], applications=["app2"], controls=["block"]),
        ]
        service = GroupingService(comparison_service, threshold=70)

        assert service.group_policies(policies) == []

    def test_empty_and_single_policy(self, comparison_service, make_policy):
        """Fewer than two policies cannot overlap."""
        service = GroupingService(comparison_service)

        assert service.group_policies([]) == []
        assert service.group_policies([make_policy("p1", users=["All"])]) == []

    def test_parallel_matches_sequential(self, comparison_service, make_policy):
        """Comparing rows on a thread pool gives the same groups as the sequential pass."""
        policies = [
            make_policy(
                f"p{i}",
                users=["All"] if i % 3 == 0 else [f"u{i % 2}"],
                applications=["All"] if i % 2 == 0 else ["app1"],
                controls=["mfa"] if i % 4 else ["mfa", "compliantDevice"],
            )
            for i in range(12)
        ]
        sequential = GroupingService(comparison_service, threshold=70, max_workers=1)
        parallel = GroupingService(comparison_service, threshold=70, max_workers=4, parallel_min_policies=2)

        assert parallel.group_policies(policies) == sequential.group_policies(policies)

    def test_parallel_skips_consumed_policies(self, make_policy):
        """The parallel pass compares exactly the pairs the sequential pass does."""
        policies = [
            make_policy(f"p{i}", users=["All"], applications=["All"], controls=["mfa"] if i % 2 else ["block"])
            for i in range(10)
        ]
        sequential_service = RecordingComparisonService(WeightingMode.WEIGHTED)
        parallel_service = RecordingComparisonService(WeightingMode.WEIGHTED)

        sequential = GroupingService(sequential_service, threshold=70).group_policies(policies)
        parallel = GroupingService(
            parallel_service, threshold=70, max_workers=4, parallel_min_policies=2
        ).group_policies(policies)

        assert parallel == sequential
        assert sorted(parallel_service.pairs) == sorted(sequential_service.pairs)
        # Grouped policies are never compared again
        assert len(parallel_service.pairs) < len(policies) * (len(policies) - 1) // 2

    def test_parallel_disabled_by_default(self, comparison_service):
        """A single worker keeps comparison sequential."""
        service = GroupingService(comparison_service)

        assert service.max_workers == 1
        assert AnalysisConfig().max_workers == 1

    @pytest.mark.parametrize("threshold", [49, 101])
    def test_threshold_out_of_range(self, comparison_service, threshold):
        """Thresholds outside 50-100 are rejected."""
        with pytest.raises(ValueError, match="threshold"):
            GroupingService(comparison_service, threshold=threshold)


class TestSelectCandidates:
    """Test candidate selection by state."""

    def test_enabled_only_by_default(self, make_policy):
        """Disabled and report-only policies are left out."""
        policies = [
            make_policy("on", state="enabled"),
            make_policy("off", state="disabled"),
            make_policy("report", state="enabledForReportingButNotEnforced"),
        ]

        assert [p.id for p in GroupingService.select_candidates(policies)] == ["on"]

    def test_include_disabled_keeps_every_state(self, make_policy):
        """The option keeps all policies in input order."""
        policies = [
            make_policy("off", state="disabled"),
            make_policy("on", state="enabled"),
            make_policy("report", state="enabledForReportingButNotEnforced"),
        ]

        selected = GroupingService.select_candidates(policies, include_disabled=True)

        assert [p.id for p in selected] == ["off", "on", "report"]
