"""
Study scheduler: the state machine that walks a learner through a deck.

Phases:
    idle -> loading -> presenting -> awaiting_rating -> presenting ... -> finished

Every transition except select_deck() is synchronous. Review logging is
dispatched in the background and never awaited, so a rate() call has already
counted the rating, advanced the pointer and changed phase when it returns.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from studydeck.domain.errors import (
    DuplicateRatingError,
    EmptyDeckError,
    InvalidTransitionError,
)
from studydeck.domain.models import (
    Card,
    ChoiceCard,
    DifficultyRating,
    OpenCard,
    RatingCounts,
    ReviewEvent,
    SessionPhase,
    SessionSummary,
    StudyCard,
    validate_card,
)
from studydeck.domain.ports import CardRepository, ReviewLogger

from .background import BackgroundDispatcher
from .clock import utc_now
from .ids import generate_event_id
from .interval_policy import interval_for, next_review
from .summary import SessionSummaryAggregator

if TYPE_CHECKING:
    from .gamification import ActivityResult, GamificationAccumulator

logger = logging.getLogger(__name__)


class StudyScheduler:
    """
    Owns one study session at a time.

    Collaborators are injected so the scheduler never reaches into global
    state and can be driven with test doubles.
    """

    def __init__(
        self,
        repository: CardRepository,
        review_logger: ReviewLogger,
        dispatcher: BackgroundDispatcher | None = None,
        aggregator: SessionSummaryAggregator | None = None,
        gamification: "GamificationAccumulator | None" = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            repository: Source of the deck's ordered cards.
            review_logger: Receives one ReviewEvent per rated card (detached).
            dispatcher: Runs detached I/O; a default one is created if omitted.
            aggregator: Builds the end-of-session summary.
            gamification: If given, receives the summary when a session finishes.
            clock: Returns the current aware datetime.
        """
        self._repo = repository
        self._review_logger = review_logger
        self._dispatcher = dispatcher or BackgroundDispatcher()
        self._aggregator = aggregator or SessionSummaryAggregator()
        self._gamification = gamification
        self._clock = clock

        # Bumped on exit() so a fetch that completes afterwards is discarded.
        self._generation = 0
        self._clear_session()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def deck_id(self) -> str | None:
        return self._deck_id

    @property
    def index(self) -> int:
        return self._index

    @property
    def cards(self) -> tuple[StudyCard, ...]:
        return tuple(self._cards)

    @property
    def current_card(self) -> StudyCard | None:
        if self._phase in (SessionPhase.PRESENTING, SessionPhase.AWAITING_RATING):
            return self._cards[self._index]
        return None

    @property
    def counts(self) -> RatingCounts:
        c = self._counts
        return RatingCounts(again=c.again, hard=c.hard, good=c.good, easy=c.easy)

    @property
    def progress(self) -> float:
        """Fraction of the deck rated so far (0.0 when no deck is loaded)."""
        if not self._cards:
            return 0.0
        return self._counts.total / len(self._cards)

    @property
    def revealed(self) -> bool:
        return self._revealed

    @property
    def selected_alternative(self) -> int | None:
        return self._selected_alternative

    @property
    def is_correct(self) -> bool | None:
        return self._is_correct

    @property
    def summary(self) -> SessionSummary | None:
        return self._summary

    @property
    def session_result(self) -> "ActivityResult | None":
        """XP and achievements granted for the finished session, if gamification is wired."""
        return self._session_result

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def select_deck(self, deck_id: str) -> None:
        """
        Fetch the deck's cards and start presenting the first one.

        Raises:
            EmptyDeckError: The deck has no cards.
            InvalidCardError: A card in the deck cannot be studied.
            InvalidTransitionError: A session is already in progress.
        Any error raised by the repository propagates unchanged. On every
        failure, cancellation included, the scheduler is back in the idle phase.
        """
        self._require(SessionPhase.IDLE, "select a deck")

        generation = self._generation
        self._phase = SessionPhase.LOADING
        self._deck_id = deck_id
        logger.info(f"Loading deck '{deck_id}'")

        try:
            cards = await self._repo.fetch_cards(deck_id)
            self._check_deck(deck_id, cards)
        except BaseException:
            if generation == self._generation:
                self._clear_session()
            raise

        if generation != self._generation:
            logger.debug(f"Session for deck '{deck_id}' exited while loading; discarding cards")
            return

        self._cards = [StudyCard(card=card) for card in cards]
        logger.info(f"Studying deck '{deck_id}' with {len(self._cards)} cards")
        self._present(0)

    def reveal_answer(self) -> None:
        """Show the answer of an open card."""
        card = self._require_presenting("reveal the answer")
        if not isinstance(card, OpenCard):
            raise InvalidTransitionError(
                f"Card '{card.id}' is multiple-choice; select an alternative instead"
            )
        self._revealed = True
        self._phase = SessionPhase.AWAITING_RATING

    def select_alternative(self, index: int) -> bool:
        """
        Choose an alternative on a multiple-choice card.

        Returns whether the choice was correct. The flag only feeds the review
        log; the learner still rates the card explicitly.
        """
        card = self._require_presenting("select an alternative")
        if not isinstance(card, ChoiceCard):
            raise InvalidTransitionError(
                f"Card '{card.id}' has an open answer; reveal it instead"
            )
        if not 0 <= index < len(card.alternatives):
            raise InvalidTransitionError(
                f"Alternative {index} does not exist on card '{card.id}' "
                f"({len(card.alternatives)} alternatives)"
            )

        self._selected_alternative = index
        self._is_correct = card.is_correct(index)
        self._revealed = True
        self._phase = SessionPhase.AWAITING_RATING
        return self._is_correct

    def rate(self, rating: DifficultyRating | str) -> StudyCard:
        """
        Record the learner's rating for the current card and advance.

        Counts the rating, stamps the next review, dispatches the review log
        without awaiting it, then moves to the next card or finishes.
        Returns the StudyCard that was rated.

        Raises RuntimeError, leaving the session untouched, when called
        outside a running event loop.
        """
        rating = DifficultyRating(rating)

        if self._phase is not SessionPhase.AWAITING_RATING:
            if self._last_rated is not None and self._last_rated == self._index - 1:
                raise DuplicateRatingError(
                    f"Card #{self._last_rated} was already rated; "
                    f"the session is now {self._phase.value}"
                )
            raise InvalidTransitionError(
                f"Cannot rate a card while the session is {self._phase.value}"
            )

        study_card = self._cards[self._index]
        if study_card.is_answered:
            raise DuplicateRatingError(f"Card '{study_card.id}' was already rated")

        # The review log is dispatched below; fail before touching any state.
        asyncio.get_running_loop()

        now = self._clock()
        self._counts.increment(rating)
        study_card.interval_ms = interval_for(rating)
        study_card.next_review = next_review(rating, now)
        study_card.is_answered = True

        study_seconds = self._elapsed_seconds(now)
        self._study_seconds += study_seconds

        event = ReviewEvent(
            event_id=generate_event_id(),
            deck_id=self._deck_id or "",
            card_id=study_card.id,
            rating=rating,
            is_correct=self._is_correct,
            study_time_seconds=study_seconds,
            reviewed_at=now,
            next_review=study_card.next_review,
            interval_ms=study_card.interval_ms,
        )
        self._dispatcher.spawn(
            self._review_logger.log_review(event), label=f"log-review-{study_card.id}"
        )

        self._last_rated = self._index
        next_index = self._index + 1
        if next_index == len(self._cards):
            self._index = next_index
            self._finish()
        else:
            self._present(next_index)
        return study_card

    def restart(self) -> None:
        """Study the same cards again from the top, without re-fetching them."""
        self._require(SessionPhase.FINISHED, "restart")
        self._cards = [StudyCard(card=sc.card) for sc in self._cards]
        self._counts = RatingCounts()
        self._study_seconds = 0
        self._summary = None
        self._session_result = None
        self._last_rated = None
        logger.info(f"Restarting deck '{self._deck_id}'")
        self._present(0)

    def exit(self) -> None:
        """
        Discard the session immediately, from any phase.

        In-flight background work is left to finish on its own.
        """
        if self._phase is not SessionPhase.IDLE:
            logger.info(f"Exiting session for deck '{self._deck_id}' at card #{self._index}")
        self._generation += 1
        self._clear_session()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_session(self) -> None:
        self._phase = SessionPhase.IDLE
        self._deck_id: str | None = None
        self._cards: list[StudyCard] = []
        self._index = 0
        self._counts = RatingCounts()
        self._summary: SessionSummary | None = None
        self._session_result: "ActivityResult | None" = None
        self._last_rated: int | None = None
        self._study_seconds = 0
        self._clear_transient()

    def _clear_transient(self) -> None:
        self._revealed = False
        self._selected_alternative: int | None = None
        self._is_correct: bool | None = None
        self._presented_at: datetime | None = None

    def _present(self, index: int) -> None:
        self._clear_transient()
        self._index = index
        self._phase = SessionPhase.PRESENTING
        self._presented_at = self._clock()

    def _finish(self) -> None:
        self._clear_transient()
        self._phase = SessionPhase.FINISHED
        self._summary = self._aggregator.summarize(self._counts, self._study_seconds)
        logger.info(
            f"Finished deck '{self._deck_id}': {self._summary.total} cards, "
            f"{self._summary.remembered_percent}% remembered, +{self._summary.xp_awarded} XP"
        )
        if self._gamification is not None:
            self._session_result = self._gamification.record_session(self._summary)

    def _check_deck(self, deck_id: str, cards: Sequence[Card]) -> None:
        if not cards:
            raise EmptyDeckError(deck_id)
        for card in cards:
            validate_card(card)

    def _elapsed_seconds(self, now: datetime) -> int:
        if self._presented_at is None:
            return 0
        return max(0, round((now - self._presented_at).total_seconds()))

    def _require(self, phase: SessionPhase, action: str) -> None:
        if self._phase is not phase:
            raise InvalidTransitionError(
                f"Cannot {action} while the session is {self._phase.value}"
            )

    def _require_presenting(self, action: str) -> Card:
        self._require(SessionPhase.PRESENTING, action)
        return self._cards[self._index].card
