"""
Domain models for study sessions and gamification.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .constants import (
    DEFAULT_CARD_DIFFICULTY,
    DEFAULT_EASE_FACTOR,
    MAX_ALTERNATIVES,
    MAX_CARD_DIFFICULTY,
    MIN_ALTERNATIVES,
    MIN_CARD_DIFFICULTY,
    XP_PER_LEVEL,
)
from .errors import InvalidCardError


class DifficultyRating(str, Enum):
    """The learner's self-assessed recall difficulty for a card just reviewed."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PRESENTING = "presenting"
    AWAITING_RATING = "awaiting_rating"
    FINISHED = "finished"


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpenCard:
    """
    A question with a free-form answer the learner reveals.

    Attributes:
        difficulty: Human-assigned rank (1-5), independent of session ratings.
    """

    id: str
    deck_id: str
    question: str
    answer: str
    tags: tuple[str, ...] = ()
    difficulty: int = DEFAULT_CARD_DIFFICULTY
    image_url: str | None = None
    audio_url: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple(self.tags))
        validate_card(self)


@dataclass(frozen=True)
class ChoiceCard:
    """
    A multiple-choice question with 2-4 alternatives, exactly one correct.

    Attributes:
        alternatives: The answer options shown to the learner.
        correct_alternative: Index into alternatives of the right answer.
        answer: Optional explanation shown together with the result.
    """

    id: str
    deck_id: str
    question: str
    alternatives: tuple[str, ...]
    correct_alternative: int
    answer: str = ""
    tags: tuple[str, ...] = ()
    difficulty: int = DEFAULT_CARD_DIFFICULTY
    image_url: str | None = None
    audio_url: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "alternatives", tuple(self.alternatives))
        object.__setattr__(self, "tags", tuple(self.tags))
        validate_card(self)

    def is_correct(self, index: int) -> bool:
        return index == self.correct_alternative


Card = OpenCard | ChoiceCard


def validate_card(card: Card) -> None:
    """Raise InvalidCardError if the card cannot be studied."""
    if not MIN_CARD_DIFFICULTY <= card.difficulty <= MAX_CARD_DIFFICULTY:
        raise InvalidCardError(
            f"difficulty must be between {MIN_CARD_DIFFICULTY} and {MAX_CARD_DIFFICULTY}, "
            f"got {card.difficulty}",
            card_id=card.id,
        )

    if isinstance(card, ChoiceCard):
        count = len(card.alternatives)
        if not MIN_ALTERNATIVES <= count <= MAX_ALTERNATIVES:
            raise InvalidCardError(
                f"multiple-choice cards need {MIN_ALTERNATIVES}-{MAX_ALTERNATIVES} "
                f"alternatives, got {count}",
                card_id=card.id,
            )
        if not 0 <= card.correct_alternative < count:
            raise InvalidCardError(
                f"correct alternative {card.correct_alternative} is out of range",
                card_id=card.id,
            )


@dataclass
class StudyCard:
    """
    Session-scoped wrapper around a Card.

    Created when a session starts and discarded when it ends. Only the derived
    ReviewEvent is ever persisted.
    """

    card: Card
    is_answered: bool = False
    next_review: datetime | None = None
    interval_ms: int = 0
    # Carried for compatibility with stored cards; the interval policy does not read it.
    ease_factor: float = DEFAULT_EASE_FACTOR

    @property
    def id(self) -> str:
        return self.card.id


# ---------------------------------------------------------------------------
# Session outcomes
# ---------------------------------------------------------------------------


@dataclass
class RatingCounts:
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0

    def increment(self, rating: DifficultyRating) -> None:
        setattr(self, rating.value, self.get(rating) + 1)

    def get(self, rating: DifficultyRating) -> int:
        return getattr(self, rating.value)

    @property
    def total(self) -> int:
        return self.again + self.hard + self.good + self.easy


@dataclass(frozen=True)
class ReviewEvent:
    """
    One answered card, as sent to the review log.

    Attributes:
        event_id: Unique id so the external store can upsert idempotently.
        is_correct: Outcome of the chosen alternative; None for open cards.
        study_time_seconds: Time from presenting the card to rating it.
    """

    event_id: str
    deck_id: str
    card_id: str
    rating: DifficultyRating
    is_correct: bool | None
    study_time_seconds: int
    reviewed_at: datetime
    next_review: datetime
    interval_ms: int


@dataclass(frozen=True)
class SessionSummary:
    again: int
    hard: int
    good: int
    easy: int
    total: int
    remembered_percent: int
    xp_awarded: int
    study_time_seconds: int = 0

    @property
    def not_remembered_percent(self) -> int:
        return 100 - self.remembered_percent if self.total > 0 else 0

    def percent_for(self, rating: DifficultyRating) -> int:
        if self.total == 0:
            return 0
        return round_half_up(100 * getattr(self, rating.value) / self.total)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(value + 0.5)


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AchievementDefinition:
    """
    A one-time-unlockable milestone.

    Attributes:
        condition: Name of the profile metric checked against target, or None
            for achievements that are only unlocked explicitly.
        target: Threshold the metric must reach (>=).
        xp_reward: XP granted the first time the achievement unlocks.
    """

    id: str
    name: str
    description: str = ""
    icon: str = "🏆"
    category: str = "milestone"
    condition: str | None = None
    target: int = 0
    xp_reward: int = 0


@dataclass
class Achievement:
    id: str
    unlocked: bool = False
    unlocked_at: datetime | None = None


@dataclass
class GamificationProfile:
    xp: int = 0
    streak: int = 0
    achievements: dict[str, Achievement] = field(default_factory=dict)

    # Activity counters (drive achievement rules)
    sessions_completed: int = 0
    cards_reviewed: int = 0
    cards_created: int = 0
    decks_created: int = 0

    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @property
    def xp_to_next_level(self) -> int:
        return XP_PER_LEVEL - (self.xp % XP_PER_LEVEL)


@dataclass(frozen=True)
class XpResult:
    new_total: int
    leveled_up: bool
    new_level: int | None = None


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1
