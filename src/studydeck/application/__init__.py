# Application Package
from .background import BackgroundDispatcher
from .gamification import ActivityResult, GamificationAccumulator
from .interval_policy import interval_for, next_review
from .review_queue import QueuedReviewLogger
from .scheduler import StudyScheduler
from .sessions import SessionRegistry
from .summary import SessionSummaryAggregator

__all__ = [
    "ActivityResult",
    "BackgroundDispatcher",
    "GamificationAccumulator",
    "QueuedReviewLogger",
    "SessionRegistry",
    "SessionSummaryAggregator",
    "StudyScheduler",
    "interval_for",
    "next_review",
]
