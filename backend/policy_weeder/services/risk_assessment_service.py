"""Risk assessment for individual conditional access policies."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from policy_weeder.models.analysis import RiskLevel
from policy_weeder.models.policy import ALL, Policy
from policy_weeder.schemas.analysis import RiskAssessment, RiskDetail

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RiskRule:
    """A scope or control breadth factor and the level it implies."""

    level: RiskLevel
    factor: str
    applies: Callable[[Policy], bool]


def _all_users_unrestricted(policy: Policy) -> bool:
    users = policy.conditions.users
    return ALL in users.include_users and not users.exclude_users and not policy.has_grant_controls


def _all_applications_unrestricted(policy: Policy) -> bool:
    return ALL in policy.application_scope and not policy.has_grant_controls


def _all_locations_unrestricted(policy: Policy) -> bool:
    return ALL in (policy.location_scope or ()) and not policy.excluded_locations


def _no_controls(policy: Policy) -> bool:
    return not policy.has_grant_controls and not policy.has_session_controls


# High rules precede Medium rules; the first matching rule sets the level
RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule(RiskLevel.HIGH, "All users targeted without exclusions or grant controls", _all_users_unrestricted),
    RiskRule(RiskLevel.HIGH, "All applications targeted without grant controls", _all_applications_unrestricted),
    RiskRule(RiskLevel.MEDIUM, "All locations targeted without exclusions", _all_locations_unrestricted),
    RiskRule(RiskLevel.MEDIUM, "No grant or session controls", _no_controls),
)


class RiskAssessmentService:
    """Assigns Low/Medium/High risk to each policy from its own breadth."""

    @staticmethod
    def assess_policy(policy: Policy) -> RiskDetail:
        """Assess one policy independently of any other.

        Every matching factor is listed, but the level is that of the first
        matching rule and never escalates beyond High. Low is the default.
        """
        matched = [rule for rule in RISK_RULES if rule.applies(policy)]
        level = matched[0].level if matched else RiskLevel.LOW

        return RiskDetail(
            policy_id=policy.id,
            display_name=policy.display_name,
            risk_level=level,
            risk_factors=[rule.factor for rule in matched],
        )

    def assess(self, policies: Sequence[Policy]) -> tuple[RiskAssessment, list[RiskDetail]]:
        """Assess every enabled policy.

        Args:
            policies: Full policy set

        Returns:
            Tuple of policy ids bucketed by level, and per-policy details
        """
        details = [self.assess_policy(policy) for policy in policies if policy.is_enabled]

        buckets: dict[RiskLevel, list[str]] = {level: [] for level in RiskLevel}
        for detail in details:
            buckets[detail.risk_level].append(detail.policy_id)

        logger.info(
            "risk_assessment_complete",
            assessed=len(details),
            high=len(buckets[RiskLevel.HIGH]),
            medium=len(buckets[RiskLevel.MEDIUM]),
            low=len(buckets[RiskLevel.LOW]),
        )

        assessment = RiskAssessment(
            high=buckets[RiskLevel.HIGH],
            medium=buckets[RiskLevel.MEDIUM],
            low=buckets[RiskLevel.LOW],
        )
        return assessment, details
