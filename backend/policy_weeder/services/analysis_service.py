"""Analysis pass over a conditional access policy set."""

import time
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from typing import Any

import structlog

from policy_weeder.core.config import AnalysisConfig
from policy_weeder.core.metrics import (
    increment_malformed_policies,
    increment_policies_analyzed,
    record_analysis_duration,
    set_overlap_groups,
    set_security_score,
)
from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import AnalysisResult
from policy_weeder.services.comparison_service import ComparisonService
from policy_weeder.services.consolidation_service import ConsolidationService
from policy_weeder.services.duplicate_detection_service import DuplicateDetectionService
from policy_weeder.services.grouping_service import GroupingService
from policy_weeder.services.normalization_service import NormalizationService
from policy_weeder.services.overview_service import OverviewService
from policy_weeder.services.risk_assessment_service import RiskAssessmentService
from policy_weeder.services.security_score_service import SecurityScoreService
from policy_weeder.services.weeding_service import WeedingService

logger = structlog.get_logger(__name__)


class AnalysisService:
    """Runs one analysis pass and returns its result by value.

    The pass is deterministic for a given policy set, configuration and
    reference date. Input policies are never mutated and no state is kept
    between passes.
    """

    def __init__(self, config: AnalysisConfig | None = None):
        """Initialize the analysis service."""
        self.config = config or AnalysisConfig.from_settings()

        self.normalization_service = NormalizationService()
        self.grouping_service = GroupingService(
            ComparisonService(self.config.weighting_mode),
            threshold=self.config.overlap_threshold,
            max_workers=self.config.max_workers,
            parallel_min_policies=self.config.parallel_min_policies,
        )
        self.duplicate_detection_service = DuplicateDetectionService(
            min_similarity=self.config.duplicate_threshold,
            max_workers=self.config.max_workers,
            parallel_min_policies=self.config.parallel_min_policies,
        )
        self.consolidation_service = ConsolidationService()
        self.security_score_service = SecurityScoreService()
        self.risk_assessment_service = RiskAssessmentService()
        self.weeding_service = WeedingService(stale_after_days=self.config.stale_report_only_days)
        self.overview_service = OverviewService()

    def analyze(
        self,
        payloads: Iterable[Policy | Mapping[str, Any]],
        today: date | None = None,
    ) -> AnalysisResult:
        """Analyze a policy set.

        Args:
            payloads: Policies or Graph payloads, in stable order
            today: Reference date for staleness, defaults to the current UTC date

        Returns:
            AnalysisResult for the reporting layer
        """
        started = time.perf_counter()
        today = today or datetime.now(UTC).date()

        policies, skipped = self.normalization_service.normalize(payloads)

        logger.info(
            "analysis_started",
            policies=len(policies),
            skipped=len(skipped),
            overlap_threshold=self.config.overlap_threshold,
            include_disabled=self.config.include_disabled,
            weighting_mode=self.config.weighting_mode.value,
        )

        candidates = GroupingService.select_candidates(policies, include_disabled=self.config.include_disabled)
        groups = self.grouping_service.group_policies(candidates)
        duplicate_groups = self.duplicate_detection_service.find_duplicates(candidates)

        recommendations = self.consolidation_service.recommend(groups)
        enabled_count = sum(1 for policy in policies if policy.is_enabled)
        savings = self.consolidation_service.estimate_savings(recommendations, enabled_count)

        security = self.security_score_service.calculate_score(policies, duplicate_groups)
        risk_assessment, risk_details = self.risk_assessment_service.assess(policies)
        weeding = self.weeding_service.prioritize(policies, groups, today)
        overview = self.overview_service.summarize(policies)

        result = AnalysisResult(
            overlap_groups=groups,
            consolidation_recommendations=recommendations,
            security_score=security.score,
            recommendations=security.recommendations,
            risk_assessment=risk_assessment,
            risk_details=risk_details,
            weeding_priority=weeding,
            savings_estimate=savings,
            duplicate_groups=duplicate_groups,
            skipped_policies=skipped,
            overview=overview,
        )

        self._record_metrics(policies, len(skipped), len(groups), security.score, time.perf_counter() - started)

        logger.info(
            "analysis_complete",
            overlap_groups=len(groups),
            duplicate_groups=len(duplicate_groups),
            security_score=security.score,
            weeding_entries=len(weeding),
        )

        return result

    def _record_metrics(
        self,
        policies: list[Policy],
        skipped_count: int,
        group_count: int,
        score: int,
        duration: float,
    ) -> None:
        mode = self.config.weighting_mode.value
        for state, count in Counter(policy.state.value for policy in policies).items():
            increment_policies_analyzed(state, count)
        if skipped_count:
            increment_malformed_policies(skipped_count)
        set_overlap_groups(mode, group_count)
        set_security_score(score)
        record_analysis_duration(mode, duration)


def analyze_policies(
    policies: Iterable[Policy | Mapping[str, Any]],
    config: AnalysisConfig | None = None,
    today: date | None = None,
) -> AnalysisResult:
    """Run a single analysis pass with the given configuration."""
    return AnalysisService(config).analyze(policies, today=today)
