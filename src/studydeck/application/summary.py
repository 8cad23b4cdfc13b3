"""
Session summary aggregator.

Reduces the four rating counters collected during a session into a
SessionSummary. Stateless and side-effect free.
"""

from collections.abc import Mapping

from studydeck.domain.constants import DEFAULT_XP_PER_RATING
from studydeck.domain.models import (
    DifficultyRating,
    RatingCounts,
    SessionSummary,
    round_half_up,
)


class SessionSummaryAggregator:
    """
    Builds the end-of-session summary.

    The XP table is configuration, not a contract: each rating maps to the XP
    granted per card rated that way.
    """

    def __init__(self, xp_per_rating: Mapping[str, int] | None = None):
        table = dict(DEFAULT_XP_PER_RATING)
        if xp_per_rating:
            table.update({DifficultyRating(k).value: int(v) for k, v in xp_per_rating.items()})
        if any(v < 0 for v in table.values()):
            raise ValueError(f"XP per rating must be non-negative: {table}")
        self._xp_table = table

    @property
    def xp_table(self) -> dict[str, int]:
        return dict(self._xp_table)

    def summarize(self, counts: RatingCounts, study_time_seconds: int = 0) -> SessionSummary:
        total = counts.total
        remembered = counts.good + counts.easy

        return SessionSummary(
            again=counts.again,
            hard=counts.hard,
            good=counts.good,
            easy=counts.easy,
            total=total,
            remembered_percent=self._percent(remembered, total),
            xp_awarded=self._compute_xp(counts),
            study_time_seconds=study_time_seconds,
        )

    def _percent(self, part: int, total: int) -> int:
        """Integer percentage, 0 when there is nothing to divide."""
        if total == 0:
            return 0
        return round_half_up(100 * part / total)

    def _compute_xp(self, counts: RatingCounts) -> int:
        return sum(counts.get(rating) * self._xp_table[rating.value] for rating in DifficultyRating)
