"""Enumerations shared by the analysis services."""
from enum import Enum


class WeightingMode(str, Enum):
    """Similarity strategy used for pairwise comparison."""

    WEIGHTED = "weighted"  # Weighted percentage, used for overlap/consolidation
    ATTAINABLE_POINTS = "attainable-points"  # Coarse checks, used for near-duplicates


class ConsolidationAction(str, Enum):
    """Action recommended for an overlap group."""

    MERGE = "MERGE"
    REVIEW_FOR_MERGE = "REVIEW_FOR_MERGE"
    CLARIFY_PURPOSE = "CLARIFY_PURPOSE"


class RecommendationPriority(str, Enum):
    """Priority of a consolidation recommendation."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RiskLevel(str, Enum):
    """Risk level for a single policy."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
