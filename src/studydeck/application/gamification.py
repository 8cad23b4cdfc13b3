"""
Gamification accumulator: XP, level, streak and achievements.

All mutations are applied to the in-memory profile first. A snapshot is then
saved through the ProfileStore in the background; if the save fails the error
is logged and the in-memory profile is kept as-is (local truth wins).
"""

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from studydeck.domain.achievements import (
    CARDS_PER_SESSION,
    DEFAULT_ACHIEVEMENTS,
    LEVEL,
    SESSION_ACCURACY,
    STUDY_STREAK,
    TOTAL_CARDS,
    TOTAL_DECKS,
    TOTAL_SESSIONS,
)
from studydeck.domain.constants import CARD_CREATED_XP, DECK_CREATED_XP, XP_PER_LEVEL
from studydeck.domain.models import (
    Achievement,
    AchievementDefinition,
    GamificationProfile,
    SessionSummary,
    XpResult,
    level_for_xp,
)
from studydeck.domain.ports import AchievementCatalog, ProfileStore

from .background import BackgroundDispatcher
from .clock import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityResult:
    """Outcome of an XP-granting activity (session, card or deck created)."""

    xp: XpResult
    unlocked: list[str] = field(default_factory=list)


class GamificationAccumulator:
    """
    Converts learner activity into XP deltas and achievement unlocks.

    Level is always derived from XP; there is no stored level. The streak is
    whatever the caller last set; it is never inferred from timestamps here.
    """

    def __init__(
        self,
        store: ProfileStore,
        catalog: AchievementCatalog | None = None,
        dispatcher: BackgroundDispatcher | None = None,
        clock: Callable[[], datetime] = utc_now,
        card_created_xp: int = CARD_CREATED_XP,
        deck_created_xp: int = DECK_CREATED_XP,
    ):
        self._store = store
        self._catalog = catalog
        self._dispatcher = dispatcher or BackgroundDispatcher()
        self._clock = clock
        self._card_created_xp = card_created_xp
        self._deck_created_xp = deck_created_xp

        self._profile = GamificationProfile()
        self._definitions: dict[str, AchievementDefinition] = {}
        self._set_catalog(DEFAULT_ACHIEVEMENTS)

    @property
    def profile(self) -> GamificationProfile:
        return self._profile

    @property
    def definitions(self) -> list[AchievementDefinition]:
        return list(self._definitions.values())

    def definition(self, achievement_id: str) -> AchievementDefinition | None:
        return self._definitions.get(achievement_id)

    async def load(self) -> None:
        """
        Load the stored profile and the achievement catalog.

        Failures are logged and leave the defaults in place. Achievement ids
        stored on the profile but unknown to the catalog are kept.
        """
        if self._catalog is not None:
            try:
                definitions = await self._catalog.load_achievement_catalog()
                if definitions:
                    self._set_catalog(definitions)
            except Exception as e:
                logger.warning(f"Could not load achievement catalog, using defaults: {e}")

        try:
            self._profile = await self._store.load_profile()
        except Exception as e:
            logger.warning(f"Could not load gamification profile, starting empty: {e}")
            self._profile = GamificationProfile()

        self._merge_profile_achievements()
        logger.info(
            f"Profile loaded: {self._profile.xp} XP (level {self._profile.level}), "
            f"streak {self._profile.streak}"
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def apply_xp(self, delta: int) -> XpResult:
        """
        Add a non-negative amount of XP and report whether a level was crossed.

        The result includes the rewards of any achievements the new total unlocks.
        """
        old_xp = self._profile.xp
        self._grant(delta)
        self._evaluate_achievements()
        self._persist()
        return self._xp_result(old_xp)

    def update_streak(self, consecutive_days: int) -> list[str]:
        """Replace the stored streak. Returns achievements unlocked as a result."""
        if consecutive_days < 0:
            raise ValueError(f"Streak must be non-negative, got {consecutive_days}")
        self._profile.streak = consecutive_days
        unlocked = self._evaluate_achievements()
        self._persist()
        return unlocked

    def unlock_achievement(self, achievement_id: str) -> bool:
        """
        Unlock an achievement and grant its XP reward.

        Idempotent: returns False and changes nothing (including unlocked_at)
        if it was already unlocked.
        """
        if not self._unlock(achievement_id):
            return False
        self._evaluate_achievements()
        self._persist()
        return True

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def record_session(self, summary: SessionSummary) -> ActivityResult:
        self._profile.sessions_completed += 1
        self._profile.cards_reviewed += summary.total
        return self._record(summary.xp_awarded, summary)

    def record_card_created(self) -> ActivityResult:
        self._profile.cards_created += 1
        return self._record(self._card_created_xp)

    def record_deck_created(self) -> ActivityResult:
        self._profile.decks_created += 1
        return self._record(self._deck_created_xp)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, xp: int, session: SessionSummary | None = None) -> ActivityResult:
        old_xp = self._profile.xp
        self._grant(xp)
        unlocked = self._evaluate_achievements(session)
        self._persist()
        return ActivityResult(xp=self._xp_result(old_xp), unlocked=unlocked)

    def _grant(self, delta: int) -> None:
        if delta < 0:
            raise ValueError(f"XP delta must be non-negative, got {delta}")
        self._profile.xp += delta

    def _xp_result(self, old_xp: int) -> XpResult:
        new_xp = self._profile.xp
        leveled_up = old_xp // XP_PER_LEVEL != new_xp // XP_PER_LEVEL
        new_level = level_for_xp(new_xp) if leveled_up else None
        if leveled_up:
            logger.info(f"Level up: {level_for_xp(old_xp)} -> {new_level}")
        return XpResult(new_total=new_xp, leveled_up=leveled_up, new_level=new_level)

    def _unlock(self, achievement_id: str) -> bool:
        achievement = self._profile.achievements.get(achievement_id)
        if achievement is None:
            achievement = Achievement(id=achievement_id)
            self._profile.achievements[achievement_id] = achievement
        if achievement.unlocked:
            return False

        achievement.unlocked = True
        achievement.unlocked_at = self._clock()

        definition = self._definitions.get(achievement_id)
        reward = definition.xp_reward if definition else 0
        if reward:
            self._grant(reward)
        logger.info(f"Achievement unlocked: {achievement_id} (+{reward} XP)")
        return True

    def _metrics(self, session: SessionSummary | None) -> dict[str, int]:
        p = self._profile
        metrics = {
            TOTAL_DECKS: p.decks_created,
            TOTAL_CARDS: p.cards_created,
            TOTAL_SESSIONS: p.sessions_completed,
            STUDY_STREAK: p.streak,
            LEVEL: p.level,
        }
        if session is not None and session.total > 0:
            metrics[SESSION_ACCURACY] = session.remembered_percent
            metrics[CARDS_PER_SESSION] = session.total
        return metrics

    def _evaluate_achievements(self, session: SessionSummary | None = None) -> list[str]:
        """Unlock every achievement whose rule is met. Rewards can cascade into level rules."""
        unlocked: list[str] = []
        changed = True
        while changed:
            changed = False
            metrics = self._metrics(session)
            for definition in self._definitions.values():
                if definition.condition not in metrics:
                    continue
                if metrics[definition.condition] >= definition.target and self._unlock(
                    definition.id
                ):
                    unlocked.append(definition.id)
                    changed = True
        return unlocked

    def _set_catalog(self, definitions: list[AchievementDefinition]) -> None:
        self._definitions = {d.id: d for d in definitions}
        self._merge_profile_achievements()

    def _merge_profile_achievements(self) -> None:
        for achievement_id in self._definitions:
            self._profile.achievements.setdefault(achievement_id, Achievement(id=achievement_id))

    def _persist(self) -> None:
        snapshot = copy.deepcopy(self._profile)
        self._dispatcher.spawn(self._store.save_profile(snapshot), label="save-profile")
