"""
Local YAML-file backend for offline, single-user study.

Layout of the data directory:
    decks.yaml    decks and their cards
    profile.yaml  the gamification profile
    reviews.yaml  review events keyed by event_id
"""

import logging
from pathlib import Path

import yaml

from studydeck.domain.achievements import DEFAULT_ACHIEVEMENTS
from studydeck.domain.errors import DeckNotFoundError, LoggingFailure, PersistenceFailure
from studydeck.domain.models import (
    AchievementDefinition,
    Card,
    GamificationProfile,
    ReviewEvent,
)
from studydeck.domain.ports import (
    AchievementCatalog,
    CardRepository,
    ProfileStore,
    ReviewLogger,
)

from .payloads import card_from_payload, event_to_payload, profile_from_payload, profile_to_payload

logger = logging.getLogger(__name__)

DECKS_FILE = "decks.yaml"
PROFILE_FILE = "profile.yaml"
REVIEWS_FILE = "reviews.yaml"


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
    )
    tmp.replace(path)


class YamlDeckRepository(CardRepository):
    """
    Reads decks from decks.yaml:

        decks:
          - id: spanish
            name: Spanish basics
            cards:
              - id: c1
                question: "hola"
                answer: "hello"
              - id: c2
                question: "perro?"
                alternatives: [cat, dog]
                correct_alternative: 1
    """

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / DECKS_FILE

    async def fetch_cards(self, deck_id: str) -> list[Card]:
        for deck in _read_yaml(self.path).get("decks", []):
            if str(deck.get("id")) == deck_id:
                return [card_from_payload(c, deck_id=deck_id) for c in deck.get("cards") or []]
        raise DeckNotFoundError(deck_id)


class YamlReviewLog(ReviewLogger):
    """Appends review events to reviews.yaml; re-sending an event_id overwrites it."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / REVIEWS_FILE

    async def log_review(self, event: ReviewEvent) -> None:
        try:
            data = _read_yaml(self.path)
            reviews = data.setdefault("reviews", {})
            reviews[event.event_id] = event_to_payload(event)
            _write_yaml(self.path, data)
        except (OSError, yaml.YAMLError) as e:
            raise LoggingFailure(f"Could not write {self.path}: {e}") from e
        logger.debug(f"Logged review {event.event_id} to {self.path}")


class YamlProfileStore(ProfileStore):
    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / PROFILE_FILE

    async def load_profile(self) -> GamificationProfile:
        try:
            return profile_from_payload(_read_yaml(self.path))
        except (OSError, yaml.YAMLError, KeyError, ValueError) as e:
            raise PersistenceFailure(f"Could not read {self.path}: {e}") from e

    async def save_profile(self, profile: GamificationProfile) -> None:
        try:
            _write_yaml(self.path, profile_to_payload(profile))
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceFailure(f"Could not write {self.path}: {e}") from e


class StaticAchievementCatalog(AchievementCatalog):
    """Serves a fixed list of definitions (the built-in catalog by default)."""

    def __init__(self, definitions: list[AchievementDefinition] | None = None):
        self._definitions = list(definitions or DEFAULT_ACHIEVEMENTS)

    async def load_achievement_catalog(self) -> list[AchievementDefinition]:
        return list(self._definitions)
