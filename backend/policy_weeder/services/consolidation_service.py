"""Consolidation recommendations for overlap groups."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from policy_weeder.models.analysis import ConsolidationAction, RecommendationPriority
from policy_weeder.schemas.analysis import ConsolidationRecommendation, OverlapGroup, SavingsEstimate

logger = structlog.get_logger(__name__)

MERGE_THRESHOLD = 85.0
REVIEW_THRESHOLD = 75.0

MERGE_STEPS = [
    "Document the combined scope and controls of all policies in the group",
    "Create the consolidated policy in report-only mode",
    "Monitor sign-in logs for 2 weeks",
    "Enable the consolidated policy",
    "Disable the original policies",
    "Delete the original policies after 1 month of stability",
]

REVIEW_STEPS = [
    "Compare conditions and controls of each policy side by side",
    "Identify the differences that are intentional",
    "Analyze user impact of merging the policies",
    "Merge the policies whose differences are not required",
]

CLARIFY_STEPS = [
    "Document the purpose of each policy in the group",
    "Rename the policies to reflect their purpose",
    "Re-evaluate the group once purposes are documented",
]


@dataclass(frozen=True)
class ConsolidationRule:
    """Maps a group's average similarity to a consolidation outcome."""

    matches: Callable[[float], bool]
    action: ConsolidationAction
    priority: RecommendationPriority
    estimate_reduction: Callable[[int], int | None]
    steps: list[str]
    risks: list[str]


# Evaluated in order, first match wins
CONSOLIDATION_RULES: tuple[ConsolidationRule, ...] = (
    ConsolidationRule(
        matches=lambda average: average >= MERGE_THRESHOLD,
        action=ConsolidationAction.MERGE,
        priority=RecommendationPriority.HIGH,
        estimate_reduction=lambda member_count: member_count,
        steps=MERGE_STEPS,
        risks=["wider scope than intended", "combined conditions may affect users differently"],
    ),
    ConsolidationRule(
        matches=lambda average: average >= REVIEW_THRESHOLD,
        action=ConsolidationAction.REVIEW_FOR_MERGE,
        priority=RecommendationPriority.MEDIUM,
        estimate_reduction=lambda member_count: member_count // 2,
        steps=REVIEW_STEPS,
        risks=["subtle but important differences", "user impact analysis required"],
    ),
    ConsolidationRule(
        matches=lambda average: True,
        action=ConsolidationAction.CLARIFY_PURPOSE,
        priority=RecommendationPriority.LOW,
        estimate_reduction=lambda member_count: None,
        steps=CLARIFY_STEPS,
        risks=["may discover policies are actually redundant"],
    ),
)


class ConsolidationService:
    """Classifies overlap groups into consolidation recommendations."""

    @staticmethod
    def match_rule(average_similarity: float) -> ConsolidationRule:
        """Return the first rule matching an average similarity."""
        for rule in CONSOLIDATION_RULES:
            if rule.matches(average_similarity):
                return rule
        raise LookupError(f"No consolidation rule matches {average_similarity}")

    def classify(self, group: OverlapGroup) -> ConsolidationRecommendation:
        """Build the recommendation for one overlap group."""
        rule = self.match_rule(group.average_similarity)
        return ConsolidationRecommendation(
            main_policy_id=group.main_policy.id,
            member_policy_ids=[member.policy.id for member in group.members],
            average_similarity=group.average_similarity,
            action=rule.action,
            priority=rule.priority,
            estimated_reduction=rule.estimate_reduction(group.member_count),
            implementation_steps=list(rule.steps),
            risks=list(rule.risks),
        )

    def recommend(self, groups: Sequence[OverlapGroup]) -> list[ConsolidationRecommendation]:
        """Classify every overlap group, preserving group order."""
        recommendations = [self.classify(group) for group in groups]

        logger.info(
            "consolidation_recommendations_built",
            merge=sum(1 for r in recommendations if r.action == ConsolidationAction.MERGE),
            review=sum(1 for r in recommendations if r.action == ConsolidationAction.REVIEW_FOR_MERGE),
            clarify=sum(1 for r in recommendations if r.action == ConsolidationAction.CLARIFY_PURPOSE),
        )

        return recommendations

    @staticmethod
    def estimate_savings(
        recommendations: Sequence[ConsolidationRecommendation],
        enabled_policy_count: int,
    ) -> SavingsEstimate:
        """Aggregate the savings of a set of recommendations.

        HIGH priority reductions count as removable policies, MEDIUM priority
        reductions as mergeable ones.
        """
        removed = sum(
            r.estimated_reduction or 0 for r in recommendations if r.priority == RecommendationPriority.HIGH
        )
        merged = sum(
            r.estimated_reduction or 0 for r in recommendations if r.priority == RecommendationPriority.MEDIUM
        )

        if enabled_policy_count > 0:
            complexity_reduction = round((removed + merged) / enabled_policy_count * 100, 1)
        else:
            complexity_reduction = 0.0

        return SavingsEstimate(
            policies_can_be_removed=removed,
            policies_can_be_merged=merged,
            complexity_reduction_percent=complexity_reduction,
        )
