"""Security posture scoring for a conditional access policy set."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from policy_weeder.models.policy import ALL, Policy
from policy_weeder.schemas.analysis import OverlapGroup, SecurityScoreReport

logger = structlog.get_logger(__name__)

MFA_CONTROL = "mfa"
BLOCK_CONTROL = "block"
LEGACY_CLIENT_APP_TYPES = frozenset({"exchangeActiveSync", "other"})

MISSING_MFA_PENALTY = 30
MISSING_ADMIN_MFA_PENALTY = 20
MISSING_LEGACY_BLOCK_PENALTY = 15
DUPLICATE_GROUP_PENALTY = 5
UNNECESSARY_POLICY_PENALTY = 3


def requires_mfa(policy: Policy) -> bool:
    return policy.requires(MFA_CONTROL)


def requires_admin_mfa(policy: Policy) -> bool:
    return bool(policy.conditions.users.include_roles) and policy.requires(MFA_CONTROL)


def blocks_legacy_clients(policy: Policy) -> bool:
    targets_legacy = bool(LEGACY_CLIENT_APP_TYPES.intersection(policy.conditions.client_app_types))
    return targets_legacy and policy.requires(BLOCK_CONTROL)


@dataclass(frozen=True)
class BaselineCheck:
    """A control that at least one enabled policy should enforce."""

    satisfied_by: Callable[[Policy], bool]
    penalty: int
    recommendation: str


# Evaluated in order; recommendations follow the same order
BASELINE_CHECKS: tuple[BaselineCheck, ...] = (
    BaselineCheck(
        satisfied_by=requires_mfa,
        penalty=MISSING_MFA_PENALTY,
        recommendation="Require multi-factor authentication in at least one enabled policy",
    ),
    BaselineCheck(
        satisfied_by=requires_admin_mfa,
        penalty=MISSING_ADMIN_MFA_PENALTY,
        recommendation="Require multi-factor authentication for administrative directory roles",
    ),
    BaselineCheck(
        satisfied_by=blocks_legacy_clients,
        penalty=MISSING_LEGACY_BLOCK_PENALTY,
        recommendation="Block legacy authentication (Exchange ActiveSync and other clients)",
    ),
)

# A policy is unnecessary when any of these holds; the first match names the reason
UNNECESSARY_POLICY_RULES: tuple[tuple[str, Callable[[Policy], bool]], ...] = (
    ("disabled", lambda policy: policy.is_disabled),
    (
        "applies to all users or all applications without grant controls",
        lambda policy: (ALL in policy.user_scope or ALL in policy.application_scope)
        and not policy.has_grant_controls,
    ),
    (
        "has neither grant nor session controls",
        lambda policy: not policy.has_grant_controls and not policy.has_session_controls,
    ),
)


class SecurityScoreService:
    """Computes a 0-100 posture score with explanatory recommendations."""

    @staticmethod
    def unnecessary_reason(policy: Policy) -> str | None:
        """Return why a policy is unnecessary, or None if it is not."""
        for reason, predicate in UNNECESSARY_POLICY_RULES:
            if predicate(policy):
                return reason
        return None

    def find_unnecessary_policies(self, policies: Sequence[Policy]) -> list[Policy]:
        """Policies that are disabled, overly broad without controls, or control nothing."""
        return [policy for policy in policies if self.unnecessary_reason(policy) is not None]

    def calculate_score(
        self,
        policies: Sequence[Policy],
        duplicate_groups: Sequence[OverlapGroup] = (),
    ) -> SecurityScoreReport:
        """Calculate the security score.

        Starts at 100 and deducts for missing baseline controls, duplicate
        groups and unnecessary policies. Never returns less than 0.

        Args:
            policies: Full policy set
            duplicate_groups: Groups found by the basic duplicate finder

        Returns:
            SecurityScoreReport with score and ordered recommendations
        """
        enabled = [policy for policy in policies if policy.is_enabled]
        score = 100
        recommendations = []

        for check in BASELINE_CHECKS:
            if not any(check.satisfied_by(policy) for policy in enabled):
                score -= check.penalty
                recommendations.append(check.recommendation)

        if duplicate_groups:
            score -= DUPLICATE_GROUP_PENALTY * len(duplicate_groups)
            recommendations.append(f"Consolidate {len(duplicate_groups)} duplicate policy group(s)")

        unnecessary = self.find_unnecessary_policies(policies)
        if unnecessary:
            score -= UNNECESSARY_POLICY_PENALTY * len(unnecessary)
            recommendations.append(f"Remove or fix {len(unnecessary)} unnecessary policy(ies)")

        score = max(score, 0)

        logger.info(
            "security_score_calculated",
            score=score,
            enabled_policies=len(enabled),
            duplicate_groups=len(duplicate_groups),
            unnecessary_policies=len(unnecessary),
        )

        return SecurityScoreReport(
            score=score,
            recommendations=recommendations,
            duplicate_group_count=len(duplicate_groups),
            unnecessary_policy_ids=[policy.id for policy in unnecessary],
        )
