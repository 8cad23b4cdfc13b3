from datetime import datetime, timedelta, timezone

import pytest

from studydeck.domain.errors import DeckNotFoundError
from studydeck.domain.models import ChoiceCard, OpenCard
from studydeck.domain.ports import CardRepository


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeRepository(CardRepository):
    def __init__(self, decks: dict):
        self.decks = decks
        self.calls: list[str] = []

    async def fetch_cards(self, deck_id):
        self.calls.append(deck_id)
        if deck_id not in self.decks:
            raise DeckNotFoundError(deck_id)
        return list(self.decks[deck_id])


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    for var in ("STUDYDECK_BACKEND", "STUDYDECK_DATA_DIR", "STUDYDECK_API_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def open_cards():
    return [
        OpenCard(id="c1", deck_id="spanish", question="hola", answer="hello"),
        OpenCard(id="c2", deck_id="spanish", question="adiós", answer="goodbye"),
        OpenCard(id="c3", deck_id="spanish", question="gracias", answer="thank you"),
    ]


@pytest.fixture
def choice_card():
    return ChoiceCard(
        id="q1",
        deck_id="animals",
        question="Which one barks?",
        alternatives=("cat", "dog", "fish"),
        correct_alternative=1,
    )


@pytest.fixture
def repository(open_cards, choice_card):
    return FakeRepository(
        {
            "spanish": open_cards,
            "animals": [choice_card],
            "empty": [],
        }
    )
