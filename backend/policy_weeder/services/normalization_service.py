"""Normalization of conditional access policy payloads into Policy records."""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from policy_weeder.core.exceptions import MalformedPolicyError
from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import SkippedPolicy

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("id", "state")


class NormalizationService:
    """Turns Graph payloads (or ready Policy records) into an analyzable set."""

    @staticmethod
    def to_policy(payload: Policy | Mapping[str, Any]) -> Policy:
        """Validate a single payload.

        Args:
            payload: A Policy, or a conditionalAccess policy dict in Graph or
                snake_case shape

        Returns:
            The validated Policy

        Raises:
            MalformedPolicyError: If identity fields are missing or the payload
                does not validate
        """
        if isinstance(payload, Policy):
            return payload

        if not isinstance(payload, Mapping):
            raise MalformedPolicyError(f"expected a mapping, got {type(payload).__name__}")

        policy_id = str(payload["id"]) if payload.get("id") is not None else None
        for field in REQUIRED_FIELDS:
            if not payload.get(field):
                raise MalformedPolicyError(f"missing required field '{field}'", policy_id=policy_id)

        try:
            return Policy.model_validate(payload)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            raise MalformedPolicyError(problems, policy_id=policy_id) from e

    @staticmethod
    def _display_name(payload: Any) -> str | None:
        if isinstance(payload, Policy):
            return payload.display_name
        if isinstance(payload, Mapping):
            name = payload.get("displayName", payload.get("display_name"))
            return str(name) if name is not None else None
        return None

    def normalize(
        self, payloads: Iterable[Policy | Mapping[str, Any]]
    ) -> tuple[list[Policy], list[SkippedPolicy]]:
        """Normalize a policy collection, skipping malformed entries.

        Malformed entries and repeated ids are reported, never fatal. The
        first occurrence of an id wins.

        Args:
            payloads: Policies or raw payloads in input order

        Returns:
            Tuple of (accepted policies in input order, skipped entries)
        """
        policies = []
        skipped = []
        seen_ids: set[str] = set()

        for payload in payloads:
            try:
                policy = self.to_policy(payload)
                if policy.id in seen_ids:
                    raise MalformedPolicyError("duplicate policy id", policy_id=policy.id)
            except MalformedPolicyError as e:
                display_name = self._display_name(payload)
                logger.warning(
                    "policy_skipped",
                    policy_id=e.policy_id,
                    display_name=display_name,
                    reason=e.reason,
                )
                skipped.append(SkippedPolicy(policy_id=e.policy_id, display_name=display_name, reason=e.reason))
                continue

            seen_ids.add(policy.id)
            policies.append(policy)

        logger.info("policies_normalized", accepted=len(policies), skipped=len(skipped))

        return policies, skipped
