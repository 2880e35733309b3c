"""Service for detecting near-duplicate conditional access policies."""

from collections.abc import Sequence

import structlog

from policy_weeder.models.analysis import WeightingMode
from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import OverlapGroup
from policy_weeder.services.comparison_service import ComparisonService
from policy_weeder.services.grouping_service import GroupingService

logger = structlog.get_logger(__name__)


class DuplicateDetectionService:
    """Basic duplicate finder: attainable-points scoring at a fixed bar."""

    def __init__(self, min_similarity: int = 80, max_workers: int = 1, parallel_min_policies: int = 500):
        """Initialize the duplicate detection service."""
        self.grouping_service = GroupingService(
            ComparisonService(WeightingMode.ATTAINABLE_POINTS),
            threshold=min_similarity,
            max_workers=max_workers,
            parallel_min_policies=parallel_min_policies,
        )

    def find_duplicates(self, policies: Sequence[Policy]) -> list[OverlapGroup]:
        """Find groups of near-duplicate policies.

        Args:
            policies: Policies to inspect, in stable order

        Returns:
            Duplicate groups, each with a main policy and its duplicates
        """
        groups = self.grouping_service.group_policies(policies)

        logger.info(
            "duplicates_found",
            total_policies=len(policies),
            duplicate_groups=len(groups),
            total_duplicate_policies=sum(group.member_count for group in groups),
        )

        return groups
