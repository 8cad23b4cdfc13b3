"""
Mapping between domain models and the JSON/YAML shapes used by the adapters.

Reads accept both the snake_case keys written here and the camelCase keys
the remote data service uses for some fields.
"""

from datetime import datetime
from typing import Any

from studydeck.domain.errors import InvalidCardError
from studydeck.domain.models import (
    Achievement,
    AchievementDefinition,
    Card,
    ChoiceCard,
    GamificationProfile,
    OpenCard,
    ReviewEvent,
)


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


def card_from_payload(data: dict, deck_id: str | None = None) -> Card:
    """
    Build a Card from a card object.

    A card with a non-empty "alternatives" list is multiple-choice; anything
    else is an open card.

    Raises:
        InvalidCardError: Required fields are missing or malformed.
    """
    if not isinstance(data, dict):
        raise InvalidCardError(f"expected a card object, got {type(data).__name__}")

    card_id = _first(data, "id", "_id")
    if card_id is None:
        raise InvalidCardError("card has no id")
    card_id = str(card_id)

    question = _first(data, "question", default="")
    common = {
        "id": card_id,
        "deck_id": str(_first(data, "deck_id", "deckId", default=deck_id or "")),
        "question": str(question),
        "tags": tuple(_first(data, "tags", default=[])),
        "difficulty": _as_int(_first(data, "difficulty", default=3), "difficulty", card_id),
        "image_url": _first(data, "image_url", "imageUrl"),
        "audio_url": _first(data, "audio_url", "audioUrl"),
    }

    alternatives = _first(data, "alternatives", default=[])
    if alternatives:
        correct = _first(data, "correct_alternative", "correctAlternative")
        if correct is None:
            raise InvalidCardError("multiple-choice card has no correct alternative", card_id)
        return ChoiceCard(
            alternatives=tuple(str(a) for a in alternatives),
            correct_alternative=_as_int(correct, "correct alternative", card_id),
            answer=str(_first(data, "answer", default="")),
            **common,
        )

    return OpenCard(answer=str(_first(data, "answer", default="")), **common)


def _as_int(value: Any, name: str, card_id: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidCardError(f"{name} must be an integer, got {value!r}", card_id) from None


# ---------------------------------------------------------------------------
# Review events
# ---------------------------------------------------------------------------


def event_to_payload(event: ReviewEvent) -> dict:
    return {
        "event_id": event.event_id,
        "deck_id": event.deck_id,
        "card_id": event.card_id,
        "difficulty": event.rating.value,
        "is_correct": event.is_correct,
        "study_time": event.study_time_seconds,
        "reviewed_at": _format_datetime(event.reviewed_at),
        "next_review": _format_datetime(event.next_review),
        "interval_ms": event.interval_ms,
    }


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


def profile_from_payload(data: dict | None) -> GamificationProfile:
    data = data or {}
    achievements: dict[str, Achievement] = {}
    for item in _first(data, "achievements", default=[]):
        achievement = Achievement(
            id=str(item["id"]),
            unlocked=bool(_first(item, "unlocked", "completed", default=False)),
            unlocked_at=_parse_datetime(_first(item, "unlocked_at", "completedAt")),
        )
        achievements[achievement.id] = achievement

    return GamificationProfile(
        xp=int(_first(data, "xp", "totalXP", default=0)),
        streak=int(_first(data, "streak", "studyStreak", default=0)),
        achievements=achievements,
        sessions_completed=int(_first(data, "sessions_completed", "totalStudySessions", default=0)),
        cards_reviewed=int(_first(data, "cards_reviewed", "totalCardsReviewed", default=0)),
        cards_created=int(_first(data, "cards_created", "totalCardsCreated", default=0)),
        decks_created=int(_first(data, "decks_created", "decksCreated", default=0)),
    )


def profile_to_payload(profile: GamificationProfile) -> dict:
    return {
        "xp": profile.xp,
        "level": profile.level,
        "streak": profile.streak,
        "sessions_completed": profile.sessions_completed,
        "cards_reviewed": profile.cards_reviewed,
        "cards_created": profile.cards_created,
        "decks_created": profile.decks_created,
        "achievements": [
            {
                "id": a.id,
                "unlocked": a.unlocked,
                "unlocked_at": _format_datetime(a.unlocked_at),
            }
            for a in profile.achievements.values()
        ],
    }


def definition_from_payload(data: dict) -> AchievementDefinition:
    """Accepts both a flat condition name and a {type, value} condition object."""
    condition = data.get("condition")
    target = data.get("target")
    if isinstance(condition, dict):
        if target is None:
            target = condition.get("value")
        condition = condition.get("type")

    return AchievementDefinition(
        id=str(data["id"]),
        name=str(data.get("name", data["id"])),
        description=str(data.get("description", "")),
        icon=str(data.get("icon") or "🏆"),
        category=str(data.get("category", "milestone")),
        condition=condition,
        target=int(target or 0),
        xp_reward=int(_first(data, "xp_reward", "xpReward", "xp", default=0)),
    )
