"""Schemas for policy analysis results."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from policy_weeder.models.analysis import ConsolidationAction, RecommendationPriority, RiskLevel
from policy_weeder.models.policy import Policy, PolicyState


class AnalysisSchema(BaseModel):
    """Base schema serialized with camelCase keys for the reporting layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class PolicyRef(AnalysisSchema):
    """Identity of a policy referenced from a result."""

    id: str
    display_name: str

    @classmethod
    def of(cls, policy: Policy) -> "PolicyRef":
        return cls(id=policy.id, display_name=policy.display_name)


class DimensionScores(AnalysisSchema):
    """Per-dimension overlap scores (0-100)."""

    users: float = Field(..., ge=0.0, le=100.0)
    applications: float = Field(..., ge=0.0, le=100.0)
    locations: float = Field(..., ge=0.0, le=100.0)
    controls: float = Field(..., ge=0.0, le=100.0)
    sessions: float = Field(..., ge=0.0, le=100.0)


class OverlapResult(AnalysisSchema):
    """Comparison of one policy pair."""

    policy_a_id: str
    policy_b_id: str
    scores: DimensionScores
    similarity: float = Field(..., ge=0.0, le=100.0, description="Aggregate similarity, one decimal")
    conflicts: list[str] = Field(default_factory=list, description="Informational conflicts, never scored")


class OverlapMember(AnalysisSchema):
    """A policy grouped under a main policy."""

    policy: PolicyRef
    overlap: OverlapResult


class OverlapGroup(AnalysisSchema):
    """Policies overlapping a main policy at or above the threshold."""

    main_policy: PolicyRef
    members: list[OverlapMember] = Field(..., min_length=1)
    average_similarity: float = Field(..., ge=0.0, le=100.0)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def policy_ids(self) -> list[str]:
        return [self.main_policy.id] + [member.policy.id for member in self.members]


class ConsolidationRecommendation(AnalysisSchema):
    """Consolidation guidance derived from an overlap group."""

    main_policy_id: str
    member_policy_ids: list[str]
    average_similarity: float
    action: ConsolidationAction
    priority: RecommendationPriority
    estimated_reduction: int | None = Field(None, description="Policies eliminated, None when not estimated")
    implementation_steps: list[str]
    risks: list[str]


class SavingsEstimate(AnalysisSchema):
    """Aggregate consolidation savings."""

    policies_can_be_removed: int = 0
    policies_can_be_merged: int = 0
    complexity_reduction_percent: float = 0.0


class RiskDetail(AnalysisSchema):
    """Risk label and contributing factors for one policy."""

    policy_id: str
    display_name: str
    risk_level: RiskLevel
    risk_factors: list[str] = Field(default_factory=list)


class RiskAssessment(AnalysisSchema):
    """Policy ids bucketed by risk level."""

    high: list[str] = Field(default_factory=list, alias="High")
    medium: list[str] = Field(default_factory=list, alias="Medium")
    low: list[str] = Field(default_factory=list, alias="Low")


class WeedingEntry(AnalysisSchema):
    """One row of the cleanup worklist."""

    policy_id: str
    display_name: str
    priority: int = Field(..., ge=1, le=4)
    reason: str
    recommended_action: str
    impact: str
    effort: str


class SecurityScoreReport(AnalysisSchema):
    """Posture score with the recommendations that explain its deductions."""

    score: int = Field(..., ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)
    duplicate_group_count: int = 0
    unnecessary_policy_ids: list[str] = Field(default_factory=list)


class SkippedPolicy(AnalysisSchema):
    """A payload excluded from analysis as malformed."""

    policy_id: str | None = None
    display_name: str | None = None
    reason: str


class RecentPolicy(AnalysisSchema):
    """A recently modified policy."""

    id: str
    display_name: str
    state: PolicyState
    modified_date_time: datetime


class PolicyOverview(AnalysisSchema):
    """Population summary of the analyzed policy set."""

    total_policies: int = 0
    enabled_policies: int = 0
    disabled_policies: int = 0
    report_only_policies: int = 0
    with_mfa: int = 0
    with_compliant_device: int = 0
    common_conditions: list[str] = Field(default_factory=list)
    recently_modified: list[RecentPolicy] = Field(default_factory=list)


class AnalysisResult(AnalysisSchema):
    """Everything one analysis pass hands to the reporting layer."""

    overlap_groups: list[OverlapGroup] = Field(default_factory=list)
    consolidation_recommendations: list[ConsolidationRecommendation] = Field(default_factory=list)
    security_score: int = Field(..., ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    risk_details: list[RiskDetail] = Field(default_factory=list)
    weeding_priority: list[WeedingEntry] = Field(default_factory=list)
    savings_estimate: SavingsEstimate = Field(default_factory=SavingsEstimate)
    duplicate_groups: list[OverlapGroup] = Field(default_factory=list)
    skipped_policies: list[SkippedPolicy] = Field(default_factory=list)
    overview: PolicyOverview = Field(default_factory=PolicyOverview)
