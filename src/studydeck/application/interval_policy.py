"""
Interval policy: maps a difficulty rating to a next-review delay.

This is a pure computation module with no I/O and no per-card history. The
same rating always yields the same delay.
"""

from datetime import datetime, timedelta

from studydeck.domain.constants import (
    INTERVAL_AGAIN_MS,
    INTERVAL_EASY_MS,
    INTERVAL_GOOD_MS,
    INTERVAL_HARD_MS,
)
from studydeck.domain.models import DifficultyRating

INTERVALS_MS: dict[DifficultyRating, int] = {
    DifficultyRating.AGAIN: INTERVAL_AGAIN_MS,
    DifficultyRating.HARD: INTERVAL_HARD_MS,
    DifficultyRating.GOOD: INTERVAL_GOOD_MS,
    DifficultyRating.EASY: INTERVAL_EASY_MS,
}


def interval_for(rating: DifficultyRating | str) -> int:
    """Return the review delay for a rating, in milliseconds."""
    return INTERVALS_MS[DifficultyRating(rating)]


def next_review(rating: DifficultyRating | str, now: datetime) -> datetime:
    """Return the moment the card should be shown again."""
    return now + timedelta(milliseconds=interval_for(rating))
