"""Weeding priority list for conditional access policy cleanup."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

import structlog

from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import OverlapGroup, WeedingEntry
from policy_weeder.services.consolidation_service import MERGE_THRESHOLD, REVIEW_THRESHOLD

logger = structlog.get_logger(__name__)

UNKNOWN_AGE_DAYS = 999  # Policies without a modification date always count as stale


@dataclass(frozen=True)
class WeedingContext:
    """Inputs shared by every weeding rule."""

    policies: Sequence[Policy]
    groups: Sequence[OverlapGroup]
    today: date
    stale_after_days: int


def days_since_modified(policy: Policy, today: date) -> int:
    """Days between the last modification and today."""
    if policy.modified_date_time is None:
        return UNKNOWN_AGE_DAYS
    return (today - policy.modified_date_time.date()).days


def _group_member_entries(
    context: WeedingContext,
    priority: int,
    in_band: Callable[[float], bool],
    action: str,
    impact: str,
    effort: str,
) -> list[WeedingEntry]:
    entries = []
    for group in context.groups:
        if not in_band(group.average_similarity):
            continue
        main_name = group.main_policy.display_name
        for member in group.members:
            entries.append(
                WeedingEntry(
                    policy_id=member.policy.id,
                    display_name=member.policy.display_name,
                    priority=priority,
                    reason=(
                        f"{member.overlap.similarity}% similar to '{main_name}' "
                        f"(group average {group.average_similarity}%)"
                    ),
                    recommended_action=action.format(main=main_name),
                    impact=impact,
                    effort=effort,
                )
            )
    return entries


def merge_candidates(context: WeedingContext) -> list[WeedingEntry]:
    return _group_member_entries(
        context,
        priority=1,
        in_band=lambda average: average >= MERGE_THRESHOLD,
        action="Merge into '{main}'",
        impact="Low",
        effort="Low",
    )


def review_candidates(context: WeedingContext) -> list[WeedingEntry]:
    return _group_member_entries(
        context,
        priority=2,
        in_band=lambda average: REVIEW_THRESHOLD <= average < MERGE_THRESHOLD,
        action="Review for merge with '{main}'",
        impact="Medium",
        effort="Medium",
    )


def disabled_policies(context: WeedingContext) -> list[WeedingEntry]:
    return [
        WeedingEntry(
            policy_id=policy.id,
            display_name=policy.display_name,
            priority=3,
            reason="Policy is disabled",
            recommended_action="Delete if no longer required",
            impact="None",
            effort="Low",
        )
        for policy in context.policies
        if policy.is_disabled
    ]


def stale_report_only_policies(context: WeedingContext) -> list[WeedingEntry]:
    entries = []
    for policy in context.policies:
        if not policy.is_report_only:
            continue
        age = days_since_modified(policy, context.today)
        if age <= context.stale_after_days:
            continue
        if policy.modified_date_time is None:
            reason = "Report-only with no recorded modification date"
        else:
            reason = f"Report-only and unmodified for {age} days"
        entries.append(
            WeedingEntry(
                policy_id=policy.id,
                display_name=policy.display_name,
                priority=4,
                reason=reason,
                recommended_action="Enable or delete",
                impact="Medium",
                effort="Low",
            )
        )
    return entries


# Constructed in priority order; each rule yields at most one entry per policy
WEEDING_RULES: tuple[Callable[[WeedingContext], list[WeedingEntry]], ...] = (
    merge_candidates,
    review_candidates,
    disabled_policies,
    stale_report_only_policies,
)


class WeedingService:
    """Merges grouping, state and staleness signals into one cleanup list."""

    def __init__(self, stale_after_days: int = 30):
        """Initialize the weeding service."""
        self.stale_after_days = stale_after_days

    def prioritize(
        self,
        policies: Sequence[Policy],
        groups: Sequence[OverlapGroup],
        today: date,
    ) -> list[WeedingEntry]:
        """Build the ranked weeding list.

        A policy may appear once per matching priority tier.

        Args:
            policies: Full policy set
            groups: Overlap groups from the grouping pass
            today: Reference date for staleness

        Returns:
            Entries ordered by priority, then display name
        """
        context = WeedingContext(
            policies=policies,
            groups=groups,
            today=today,
            stale_after_days=self.stale_after_days,
        )

        entries = [entry for rule in WEEDING_RULES for entry in rule(context)]
        entries.sort(key=lambda entry: (entry.priority, entry.display_name))

        logger.info(
            "weeding_priority_built",
            total=len(entries),
            **{f"priority_{tier}": sum(1 for e in entries if e.priority == tier) for tier in range(1, 5)},
        )

        return entries
