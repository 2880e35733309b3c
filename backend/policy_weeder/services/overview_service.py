"""Population overview of a conditional access policy set."""

from collections import Counter
from collections.abc import Sequence

from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import PolicyOverview, RecentPolicy

TOP_CONDITIONS = 5
RECENTLY_MODIFIED = 5


class OverviewService:
    """Summarizes states, common controls and common conditions."""

    @staticmethod
    def common_conditions(policies: Sequence[Policy], limit: int = TOP_CONDITIONS) -> list[str]:
        """Most frequent included applications, groups and locations.

        Ties keep the order of first appearance.
        """
        counts = Counter()
        for policy in policies:
            locations = policy.conditions.locations
            counts.update(policy.conditions.applications.include_applications)
            counts.update(policy.conditions.users.include_groups)
            counts.update(locations.include_locations if locations else ())
        return [condition for condition, _ in counts.most_common(limit)]

    @staticmethod
    def recently_modified(policies: Sequence[Policy], limit: int = RECENTLY_MODIFIED) -> list[RecentPolicy]:
        """Most recently modified policies, newest first."""
        dated = [policy for policy in policies if policy.modified_date_time is not None]
        dated.sort(key=lambda policy: policy.modified_date_time, reverse=True)
        return [
            RecentPolicy(
                id=policy.id,
                display_name=policy.display_name,
                state=policy.state,
                modified_date_time=policy.modified_date_time,
            )
            for policy in dated[:limit]
        ]

    def summarize(self, policies: Sequence[Policy]) -> PolicyOverview:
        """Build the overview for a policy set."""
        return PolicyOverview(
            total_policies=len(policies),
            enabled_policies=sum(1 for policy in policies if policy.is_enabled),
            disabled_policies=sum(1 for policy in policies if policy.is_disabled),
            report_only_policies=sum(1 for policy in policies if policy.is_report_only),
            with_mfa=sum(1 for policy in policies if policy.requires("mfa")),
            with_compliant_device=sum(1 for policy in policies if policy.requires("compliantDevice")),
            common_conditions=self.common_conditions(policies),
            recently_modified=self.recently_modified(policies),
        )
