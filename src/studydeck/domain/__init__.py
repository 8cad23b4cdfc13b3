# Domain Package
from .errors import (
    DeckNotFoundError,
    DuplicateRatingError,
    EmptyDeckError,
    InvalidCardError,
    InvalidTransitionError,
    LoggingFailure,
    PersistenceFailure,
    RemoteServiceError,
    StudyDeckError,
)
from .models import (
    Achievement,
    AchievementDefinition,
    Card,
    ChoiceCard,
    DifficultyRating,
    GamificationProfile,
    OpenCard,
    RatingCounts,
    ReviewEvent,
    SessionPhase,
    SessionSummary,
    StudyCard,
    XpResult,
)
from .ports import AchievementCatalog, CardRepository, ProfileStore, ReviewLogger

__all__ = [
    "Achievement",
    "AchievementCatalog",
    "AchievementDefinition",
    "Card",
    "CardRepository",
    "ChoiceCard",
    "DeckNotFoundError",
    "DifficultyRating",
    "DuplicateRatingError",
    "EmptyDeckError",
    "GamificationProfile",
    "InvalidCardError",
    "InvalidTransitionError",
    "LoggingFailure",
    "OpenCard",
    "PersistenceFailure",
    "ProfileStore",
    "RatingCounts",
    "RemoteServiceError",
    "ReviewEvent",
    "ReviewLogger",
    "SessionPhase",
    "SessionSummary",
    "StudyCard",
    "StudyDeckError",
    "XpResult",
]
