"""Exception hierarchy for studydeck.

Errors that interrupt the learner (empty deck, invalid card, fetch failure)
are raised before a session starts presenting cards. Logging and persistence
failures are always recovered locally and only ever show up in the logs.
"""


class StudyDeckError(Exception):
    """Base class for all studydeck errors."""


class EmptyDeckError(StudyDeckError):
    """The selected deck has no cards to study."""

    def __init__(self, deck_id: str):
        super().__init__(f"Deck '{deck_id}' has no cards to study")
        self.deck_id = deck_id


class InvalidCardError(StudyDeckError):
    """A card is malformed (e.g. a multiple-choice card with < 2 alternatives)."""

    def __init__(self, message: str, card_id: str | None = None):
        if card_id is not None:
            message = f"Card '{card_id}': {message}"
        super().__init__(message)
        self.card_id = card_id


class DeckNotFoundError(StudyDeckError):
    """The requested deck does not exist."""

    def __init__(self, deck_id: str):
        super().__init__(f"Deck '{deck_id}' not found")
        self.deck_id = deck_id


class InvalidTransitionError(StudyDeckError):
    """An operation was called in a session phase that does not allow it."""


class DuplicateRatingError(InvalidTransitionError):
    """The current card has already been rated in this pass."""


class LoggingFailure(StudyDeckError):
    """A review event could not be delivered to the review log."""


class PersistenceFailure(StudyDeckError):
    """The gamification profile could not be loaded or saved."""


class RemoteServiceError(StudyDeckError):
    """The remote data service answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
