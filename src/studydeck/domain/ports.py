"""
Ports (interfaces) for the collaborators the study core depends on.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import AchievementDefinition, Card, GamificationProfile, ReviewEvent


class CardRepository(ABC):
    """
    Port for fetching the cards of a deck.

    Implementations:
        - RemoteDataService: The remote data service over HTTP.
        - YamlDeckRepository: A local decks.yaml file.
    """

    @abstractmethod
    async def fetch_cards(self, deck_id: str) -> list[Card]:
        """
        Fetch the ordered cards of a deck.

        An empty list is a valid answer; the scheduler decides what it means.
        """
        pass


class ReviewLogger(ABC):
    """Port for persisting one review event per answered card."""

    @abstractmethod
    async def log_review(self, event: ReviewEvent) -> None:
        """
        Persist a review event.

        Implementations must treat event.event_id as an upsert key so that a
        re-sent event does not create a duplicate.
        """
        pass


class ProfileStore(ABC):
    """Port for loading and saving the learner's gamification profile."""

    @abstractmethod
    async def load_profile(self) -> GamificationProfile:
        pass

    @abstractmethod
    async def save_profile(self, profile: GamificationProfile) -> None:
        pass


class AchievementCatalog(ABC):
    """Port for the list of known achievements."""

    @abstractmethod
    async def load_achievement_catalog(self) -> list[AchievementDefinition]:
        pass
