"""Overlap scoring between two attribute sets of conditional access policies."""

from collections.abc import Iterable

from policy_weeder.models.policy import ALL

BOTH_ALL_SCORE = 95.0  # "All" on both sides can still differ via exclude lists
ONE_ALL_SCORE = 70.0  # A broad policy partially subsumes a narrow one
UNSET_LOCATION_SCORE = 50.0  # An unset location condition implicitly means all locations
BOTH_SESSIONS_SCORE = 80.0  # Inner session settings are not compared


class OverlapService:
    """Computes 0-100 overlap scores for a single dimension of a policy pair."""

    @staticmethod
    def jaccard(first: Iterable[str] | None, second: Iterable[str] | None) -> float:
        """Calculate Jaccard similarity as a percentage.

        Both empty counts as vacuous agreement (100), exactly one empty as no
        overlap (0).
        """
        set_a = set(first or ())
        set_b = set(second or ())

        if not set_a and not set_b:
            return 100.0
        if not set_a or not set_b:
            return 0.0

        return round(len(set_a & set_b) / len(set_a | set_b) * 100, 1)

    @classmethod
    def scope_overlap(cls, first: Iterable[str] | None, second: Iterable[str] | None) -> float:
        """Overlap for user and application scopes, honouring the "All" sentinel."""
        first = tuple(first or ())
        second = tuple(second or ())

        first_all = ALL in first
        second_all = ALL in second

        if first_all and second_all:
            return BOTH_ALL_SCORE
        if first_all or second_all:
            return ONE_ALL_SCORE

        return cls.jaccard(first, second)

    @classmethod
    def location_overlap(cls, first: Iterable[str] | None, second: Iterable[str] | None) -> float:
        """Overlap for location scopes. None means the condition is unset."""
        if first is None or second is None:
            return UNSET_LOCATION_SCORE
        return cls.jaccard(first, second)

    @staticmethod
    def session_overlap(first_present: bool, second_present: bool) -> float:
        """Overlap for session controls, compared by presence only."""
        if first_present and second_present:
            return BOTH_SESSIONS_SCORE
        if first_present or second_present:
            return 0.0
        return 100.0
