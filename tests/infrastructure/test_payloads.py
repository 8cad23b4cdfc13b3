from datetime import datetime, timezone

import pytest

from studydeck.domain.errors import InvalidCardError
from studydeck.domain.models import (
    Achievement,
    ChoiceCard,
    DifficultyRating,
    GamificationProfile,
    OpenCard,
    ReviewEvent,
)
from studydeck.infrastructure.adapters.payloads import (
    card_from_payload,
    definition_from_payload,
    event_to_payload,
    profile_from_payload,
    profile_to_payload,
)


def test_open_card_from_payload():
    card = card_from_payload(
        {"_id": 7, "question": "hola", "answer": "hello", "tags": ["greeting"]},
        deck_id="spanish",
    )

    assert isinstance(card, OpenCard)
    assert card.id == "7"
    assert card.deck_id == "spanish"
    assert card.tags == ("greeting",)
    assert card.difficulty == 3


def test_choice_card_from_camel_case_payload():
    card = card_from_payload(
        {
            "id": "q1",
            "deckId": "animals",
            "question": "Which one barks?",
            "alternatives": ["cat", "dog"],
            "correctAlternative": 1,
            "imageUrl": "https://img.example.com/dog.png",
            "difficulty": "2",
        }
    )

    assert isinstance(card, ChoiceCard)
    assert card.deck_id == "animals"
    assert card.alternatives == ("cat", "dog")
    assert card.correct_alternative == 1
    assert card.image_url == "https://img.example.com/dog.png"
    assert card.difficulty == 2


def test_empty_alternatives_means_open_card():
    card = card_from_payload({"id": "c1", "question": "q", "answer": "a", "alternatives": []})

    assert isinstance(card, OpenCard)


@pytest.mark.parametrize(
    "payload",
    [
        {"question": "no id"},
        {"id": "c1", "question": "q", "alternatives": ["a", "b"]},
        {"id": "c1", "question": "q", "alternatives": ["a"], "correct_alternative": 0},
        {"id": "c1", "question": "q", "alternatives": ["a", "b"], "correct_alternative": 2},
        {"id": "c1", "question": "q", "answer": "a", "difficulty": "hard"},
        {"id": "c1", "question": "q", "answer": "a", "difficulty": 6},
    ],
)
def test_invalid_card_payloads(payload):
    with pytest.raises(InvalidCardError):
        card_from_payload(payload)


def test_event_payload_keys():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    event = ReviewEvent(
        event_id="rev_1",
        deck_id="spanish",
        card_id="c1",
        rating=DifficultyRating.EASY,
        is_correct=None,
        study_time_seconds=12,
        reviewed_at=now,
        next_review=now,
        interval_ms=0,
    )

    data = event_to_payload(event)

    assert data["difficulty"] == "easy"
    assert data["study_time"] == 12
    assert data["reviewed_at"] == "2026-01-01T00:00:00+00:00"
    assert data["is_correct"] is None


def test_profile_from_camel_case_payload():
    profile = profile_from_payload(
        {
            "totalXP": 250,
            "studyStreak": 4,
            "totalStudySessions": 3,
            "achievements": [
                {"id": "first_deck", "completed": True, "completedAt": "2026-01-02T10:00:00+00:00"},
                {"id": "five_decks", "completed": False},
            ],
        }
    )

    assert profile.xp == 250
    assert profile.level == 3
    assert profile.streak == 4
    assert profile.sessions_completed == 3
    assert profile.achievements["first_deck"].unlocked is True
    assert profile.achievements["first_deck"].unlocked_at.day == 2
    assert profile.achievements["five_decks"].unlocked is False


def test_profile_from_empty_payload():
    assert profile_from_payload(None) == GamificationProfile()


def test_profile_to_payload_writes_level():
    profile = GamificationProfile(
        xp=120, achievements={"first_card": Achievement(id="first_card", unlocked=True)}
    )

    data = profile_to_payload(profile)

    assert data["xp"] == 120
    assert data["level"] == 2
    assert data["achievements"] == [{"id": "first_card", "unlocked": True, "unlocked_at": None}]


def test_definition_with_condition_object():
    definition = definition_from_payload(
        {
            "id": "first_deck",
            "name": "First Deck",
            "condition": {"type": "total_decks", "value": 1},
            "xpReward": 50,
        }
    )

    assert definition.condition == "total_decks"
    assert definition.target == 1
    assert definition.xp_reward == 50
    assert definition.icon == "🏆"
