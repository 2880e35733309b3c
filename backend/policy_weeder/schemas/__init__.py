"""Pydantic schemas for analysis output."""
from policy_weeder.schemas.analysis import (
    AnalysisResult,
    ConsolidationRecommendation,
    DimensionScores,
    OverlapGroup,
    OverlapMember,
    OverlapResult,
    PolicyOverview,
    PolicyRef,
    RecentPolicy,
    RiskAssessment,
    RiskDetail,
    SavingsEstimate,
    SecurityScoreReport,
    SkippedPolicy,
    WeedingEntry,
)

__all__ = [
    "AnalysisResult",
    "ConsolidationRecommendation",
    "DimensionScores",
    "OverlapGroup",
    "OverlapMember",
    "OverlapResult",
    "PolicyOverview",
    "PolicyRef",
    "RecentPolicy",
    "RiskAssessment",
    "RiskDetail",
    "SavingsEstimate",
    "SecurityScoreReport",
    "SkippedPolicy",
    "WeedingEntry",
]
