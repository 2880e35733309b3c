"""Pairwise comparison of conditional access policies."""

from abc import ABC, abstractmethod

import structlog

from policy_weeder.models.analysis import WeightingMode
from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import DimensionScores, OverlapResult
from policy_weeder.services.overlap_service import OverlapService

logger = structlog.get_logger(__name__)

BLOCK_CONTROL = "block"

CONFLICTING_DECISIONS = "Conflicting access decisions: one policy blocks access while the other grants it"
DIFFERENT_OPERATORS = "Different control operators: grant controls are combined with AND in one policy and OR in the other"


def detect_conflicts(policy_a: Policy, policy_b: Policy) -> list[str]:
    """Detect decision conflicts between two policies.

    Conflicts are informational and never change the similarity score. The
    wording is direction-free so that the result is symmetric.
    """
    conflicts = []

    if policy_a.requires(BLOCK_CONTROL) != policy_b.requires(BLOCK_CONTROL):
        conflicts.append(CONFLICTING_DECISIONS)

    operator_a = policy_a.grant_operator
    operator_b = policy_b.grant_operator
    if operator_a is not None and operator_b is not None and operator_a != operator_b:
        conflicts.append(DIFFERENT_OPERATORS)

    return conflicts


class SimilarityStrategy(ABC):
    """Scores a policy pair on a 0-100 scale."""

    mode: WeightingMode

    @abstractmethod
    def score(self, policy_a: Policy, policy_b: Policy) -> tuple[DimensionScores, float]:
        """Return the per-dimension scores and the aggregate similarity."""

    def compare(self, policy_a: Policy, policy_b: Policy) -> OverlapResult:
        """Compare two distinct policies."""
        scores, similarity = self.score(policy_a, policy_b)
        return OverlapResult(
            policy_a_id=policy_a.id,
            policy_b_id=policy_b.id,
            scores=scores,
            similarity=similarity,
            conflicts=detect_conflicts(policy_a, policy_b),
        )


class WeightedSimilarityStrategy(SimilarityStrategy):
    """Weighted percentage over the five overlap dimensions.

    Users 30%, Applications 30%, Controls 20%, Locations 10%, Sessions 10%.
    """

    mode = WeightingMode.WEIGHTED

    WEIGHTS = {
        "users": 0.30,
        "applications": 0.30,
        "controls": 0.20,
        "locations": 0.10,
        "sessions": 0.10,
    }

    def score(self, policy_a: Policy, policy_b: Policy) -> tuple[DimensionScores, float]:
        scores = DimensionScores(
            users=OverlapService.scope_overlap(policy_a.user_scope, policy_b.user_scope),
            applications=OverlapService.scope_overlap(policy_a.application_scope, policy_b.application_scope),
            locations=OverlapService.location_overlap(policy_a.location_scope, policy_b.location_scope),
            controls=OverlapService.jaccard(policy_a.built_in_controls, policy_b.built_in_controls),
            sessions=OverlapService.session_overlap(
                policy_a.has_session_controls, policy_b.has_session_controls
            ),
        )

        similarity = sum(getattr(scores, dimension) * weight for dimension, weight in self.WEIGHTS.items())
        return scores, round(similarity, 1)


class AttainablePointsStrategy(SimilarityStrategy):
    """Coarse equality checks summed as a fraction of the attainable points.

    A category only counts toward the maximum when either policy has data in
    it. Used by the basic duplicate finder.
    """

    mode = WeightingMode.ATTAINABLE_POINTS

    POINTS = {
        "applications": 30,
        "users": 30,
        "locations": 30,
        "controls": 20,
        "sessions": 10,
    }

    def score(self, policy_a: Policy, policy_b: Policy) -> tuple[DimensionScores, float]:
        checks = {
            "applications": self._set_check(policy_a.application_scope, policy_b.application_scope),
            "users": self._set_check(policy_a.user_scope, policy_b.user_scope),
            "locations": self._set_check(policy_a.location_scope, policy_b.location_scope),
            "controls": self._set_check(policy_a.built_in_controls, policy_b.built_in_controls),
            "sessions": self._presence_check(policy_a.has_session_controls, policy_b.has_session_controls),
        }

        attainable = 0
        earned = 0
        dimension_scores = {}
        for dimension, (has_data, matches) in checks.items():
            if has_data:
                attainable += self.POINTS[dimension]
                if matches:
                    earned += self.POINTS[dimension]
            dimension_scores[dimension] = 100.0 if matches or not has_data else 0.0

        similarity = round(earned / attainable * 100, 1) if attainable else 100.0
        return DimensionScores(**dimension_scores), similarity

    @staticmethod
    def _set_check(first: tuple[str, ...] | None, second: tuple[str, ...] | None) -> tuple[bool, bool]:
        set_a = set(first or ())
        set_b = set(second or ())
        return bool(set_a or set_b), set_a == set_b

    @staticmethod
    def _presence_check(first_present: bool, second_present: bool) -> tuple[bool, bool]:
        return first_present or second_present, first_present and second_present


STRATEGIES: dict[WeightingMode, type[SimilarityStrategy]] = {
    WeightingMode.WEIGHTED: WeightedSimilarityStrategy,
    WeightingMode.ATTAINABLE_POINTS: AttainablePointsStrategy,
}


class ComparisonService:
    """Service for comparing policy pairs with a configurable strategy."""

    def __init__(self, mode: WeightingMode = WeightingMode.WEIGHTED):
        """Initialize the comparison service."""
        self.mode = WeightingMode(mode)
        self.strategy = STRATEGIES[self.mode]()

    def compare(self, policy_a: Policy, policy_b: Policy) -> OverlapResult:
        """Compare two distinct policies.

        Args:
            policy_a: First policy
            policy_b: Second policy

        Returns:
            OverlapResult with dimension scores, similarity and conflicts

        Raises:
            ValueError: If both arguments are the same policy
        """
        if policy_a.id == policy_b.id:
            raise ValueError(f"Cannot compare policy {policy_a.id} with itself")

        result = self.strategy.compare(policy_a, policy_b)

        logger.debug(
            "policies_compared",
            policy_a_id=policy_a.id,
            policy_b_id=policy_b.id,
            mode=self.mode.value,
            similarity=result.similarity,
            conflicts=len(result.conflicts),
        )

        return result
