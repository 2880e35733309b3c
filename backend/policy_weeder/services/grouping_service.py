"""Service for grouping overlapping conditional access policies."""

from collections.abc import Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import nullcontext

import structlog

from policy_weeder.models.policy import Policy
from policy_weeder.schemas.analysis import OverlapGroup, OverlapMember, OverlapResult, PolicyRef
from policy_weeder.services.comparison_service import ComparisonService

logger = structlog.get_logger(__name__)

MIN_THRESHOLD = 50
MAX_THRESHOLD = 100


class GroupingService:
    """Partitions a policy set into overlap groups.

    Grouping is a single greedy pass in input order: each unconsumed policy
    becomes a main policy and absorbs every later unconsumed policy whose
    similarity reaches the threshold. This is not a transitive closure; two
    policies that are both similar to an already consumed policy stay apart.
    """

    def __init__(
        self,
        comparison_service: ComparisonService,
        threshold: int = 70,
        max_workers: int = 1,
        parallel_min_policies: int = 500,
    ):
        """Initialize the grouping service."""
        if not MIN_THRESHOLD <= threshold <= MAX_THRESHOLD:
            raise ValueError(f"threshold must be between {MIN_THRESHOLD} and {MAX_THRESHOLD}, got {threshold}")

        self.comparison_service = comparison_service
        self.threshold = threshold
        self.max_workers = max_workers
        self.parallel_min_policies = parallel_min_policies

    @staticmethod
    def select_candidates(policies: Sequence[Policy], include_disabled: bool = False) -> list[Policy]:
        """Select the policies eligible for grouping.

        Args:
            policies: Full policy set in input order
            include_disabled: Keep policies in every state instead of enabled only

        Returns:
            Eligible policies, input order preserved
        """
        if include_disabled:
            return list(policies)
        return [policy for policy in policies if policy.is_enabled]

    def group_policies(self, policies: Sequence[Policy]) -> list[OverlapGroup]:
        """Find overlap groups among the given policies.

        Args:
            policies: Policies to group, in stable order

        Returns:
            Overlap groups in the order their main policies appear. No policy
            appears in more than one group.
        """
        parallel = self._should_parallelize(policies)
        if parallel:
            logger.info("parallel_comparison_enabled", policy_count=len(policies), max_workers=self.max_workers)

        consumed: set[str] = set()
        groups = []

        with ThreadPoolExecutor(max_workers=self.max_workers) if parallel else nullcontext() as executor:
            for index, policy in enumerate(policies):
                if policy.id in consumed:
                    continue
                consumed.add(policy.id)

                candidates = [
                    candidate for candidate in policies[index + 1:] if candidate.id not in consumed
                ]

                members = []
                for candidate, overlap in zip(candidates, self._compare_row(policy, candidates, executor)):
                    if overlap.similarity >= self.threshold:
                        members.append(OverlapMember(policy=PolicyRef.of(candidate), overlap=overlap))
                        consumed.add(candidate.id)

                if members:
                    average = round(sum(member.overlap.similarity for member in members) / len(members), 1)
                    groups.append(
                        OverlapGroup(
                            main_policy=PolicyRef.of(policy),
                            members=members,
                            average_similarity=average,
                        )
                    )

        logger.info(
            "overlap_groups_found",
            policy_count=len(policies),
            group_count=len(groups),
            threshold=self.threshold,
            mode=self.comparison_service.mode.value,
            grouped_policies=sum(len(group.members) + 1 for group in groups),
        )

        return groups

    def _should_parallelize(self, policies: Sequence[Policy]) -> bool:
        return self.max_workers > 1 and len(policies) >= self.parallel_min_policies

    def _compare_row(
        self,
        policy: Policy,
        candidates: Sequence[Policy],
        executor: Executor | None,
    ) -> Iterable[OverlapResult]:
        """Compare a main policy against its unconsumed candidates.

        Only one row is in flight at a time, and rows never include policies
        already consumed by an earlier group.
        """
        if executor is None:
            return (self.comparison_service.compare(policy, candidate) for candidate in candidates)
        return executor.map(lambda candidate: self.comparison_service.compare(policy, candidate), candidates)
