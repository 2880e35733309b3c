"""Policy and analysis models."""
from policy_weeder.models.analysis import (
    ConsolidationAction,
    RecommendationPriority,
    RiskLevel,
    WeightingMode,
)
from policy_weeder.models.policy import (
    ALL,
    ApplicationConditions,
    GrantControls,
    GrantOperator,
    LocationConditions,
    PlatformConditions,
    Policy,
    PolicyConditions,
    PolicyState,
    SessionControls,
    UserConditions,
)

__all__ = [
    "ALL",
    "ApplicationConditions",
    "ConsolidationAction",
    "GrantControls",
    "GrantOperator",
    "LocationConditions",
    "PlatformConditions",
    "Policy",
    "PolicyConditions",
    "PolicyState",
    "RecommendationPriority",
    "RiskLevel",
    "SessionControls",
    "UserConditions",
    "WeightingMode",
]
