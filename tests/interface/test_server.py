import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from studydeck import server
from studydeck.application.config import resolve_config
from studydeck.application.factory import Backend, build_services
from studydeck.application.sessions import SessionRegistry
from studydeck.consts import VERSION
from studydeck.domain.models import GamificationProfile, OpenCard
from studydeck.infrastructure.adapters.local_store import StaticAchievementCatalog
from studydeck.server import app, get_services, get_sessions


@pytest.fixture
def services(mock_home, repository):
    repository.decks["mixed"] = [
        OpenCard(id="c1", deck_id="mixed", question="hola", answer="hello"),
        *repository.decks["animals"],
    ]
    store = AsyncMock()
    store.load_profile.return_value = GamificationProfile()
    backend = Backend(
        repository=repository,
        review_logger=AsyncMock(),
        profile_store=store,
        catalog=StaticAchievementCatalog(),
    )
    return build_services(resolve_config(), backend=backend)


@pytest.fixture
def ticker():
    now = [0.0]
    return now


@pytest.fixture
def sessions(ticker):
    return SessionRegistry(idle_ttl=60, finished_ttl=10, clock=lambda: ticker[0])


@pytest.fixture
def client(services, sessions):
    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_sessions] = lambda: sessions
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _start(client, deck_id="mixed"):
    response = client.post("/sessions", json={"deck_id": deck_id})
    assert response.status_code == 201
    return response.json()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_full_session(client):
    session = _start(client)
    sid = session["session_id"]
    assert session["phase"] == "presenting"
    assert session["card"]["type"] == "open"
    assert session["card"]["answer"] is None

    revealed = client.post(f"/sessions/{sid}/reveal").json()
    assert revealed["phase"] == "awaiting_rating"
    assert revealed["card"]["answer"] == "hello"

    after_first = client.post(f"/sessions/{sid}/rate", json={"rating": "good"}).json()
    card = after_first["card"]
    assert card["type"] == "choice"
    assert card["alternatives"] == ["cat", "dog", "fish"]
    assert card["correct_alternative"] is None

    selected = client.post(f"/sessions/{sid}/select", json={"index": 1}).json()
    assert selected["is_correct"] is True
    assert selected["card"]["correct_alternative"] == 1

    finished = client.post(f"/sessions/{sid}/rate", json={"rating": "easy"}).json()
    assert finished["phase"] == "finished"
    assert finished["card"] is None
    assert finished["progress"] == 1.0
    assert finished["counts"] == {"again": 0, "hard": 0, "good": 1, "easy": 1}
    summary = finished["summary"]
    assert summary["remembered_percent"] == 100
    assert summary["xp_awarded"] == 13

    profile = client.get("/profile").json()
    assert profile["sessions_completed"] == 1
    # Session XP plus the accuracy achievements
    assert profile["xp"] == 13 + 100 + 300
    unlocked = {a["id"] for a in profile["achievements"] if a["unlocked"]}
    assert unlocked == {"accurate", "perfectionist"}

    rewards = finished["rewards"]
    assert rewards["unlocked"] == ["accurate", "perfectionist"]
    assert rewards["xp"] == {"new_total": 413, "leveled_up": True, "new_level": 5}


def test_restart_after_finish(client):
    sid = _start(client, "animals")["session_id"]
    client.post(f"/sessions/{sid}/select", json={"index": 0})
    client.post(f"/sessions/{sid}/rate", json={"rating": "again"})

    restarted = client.post(f"/sessions/{sid}/restart").json()

    assert restarted["phase"] == "presenting"
    assert restarted["summary"] is None
    assert restarted["rewards"] is None


def test_restart_mid_session_conflicts(client):
    sid = _start(client)["session_id"]

    response = client.post(f"/sessions/{sid}/restart")

    assert response.status_code == 409


def test_rate_before_reveal_conflicts(client):
    sid = _start(client)["session_id"]

    response = client.post(f"/sessions/{sid}/rate", json={"rating": "good"})

    assert response.status_code == 409
    assert client.get(f"/sessions/{sid}").json()["counts"]["good"] == 0


def test_invalid_rating_rejected(client):
    sid = _start(client)["session_id"]
    client.post(f"/sessions/{sid}/reveal")

    response = client.post(f"/sessions/{sid}/rate", json={"rating": "meh"})

    assert response.status_code == 422


def test_unknown_deck(client):
    response = client.post("/sessions", json={"deck_id": "missing"})

    assert response.status_code == 404
    assert "missing" in response.json()["detail"]


def test_empty_deck(client):
    response = client.post("/sessions", json={"deck_id": "empty"})

    assert response.status_code == 422


def test_unknown_session(client):
    assert client.get("/sessions/ses_nope").status_code == 404
    assert client.post("/sessions/ses_nope/reveal").status_code == 404


def test_exit_session(client):
    sid = _start(client)["session_id"]

    assert client.delete(f"/sessions/{sid}").status_code == 204
    assert client.get(f"/sessions/{sid}").status_code == 404


def test_add_xp(client):
    response = client.post("/profile/xp", json={"amount": 150})

    assert response.status_code == 200
    assert response.json() == {"new_total": 150, "leveled_up": True, "new_level": 2}


def test_negative_xp_rejected(client):
    assert client.post("/profile/xp", json={"amount": -1}).status_code == 422


def test_update_streak(client):
    response = client.put("/profile/streak", json={"days": 3})

    assert response.json() == {"streak": 3, "unlocked": ["streak_3"]}
    assert client.get("/profile").json()["streak"] == 3


def test_unlock_achievement_is_idempotent(client):
    first = client.post("/profile/achievements/first_card/unlock").json()
    second = client.post("/profile/achievements/first_card/unlock").json()

    assert first["newly_unlocked"] is True
    assert second["newly_unlocked"] is False
    assert first["unlocked_at"] == second["unlocked_at"]


def test_deck_created_activity(client):
    response = client.post("/activity/deck-created")

    data = response.json()
    # Activity XP plus the first_deck reward
    assert data["xp"]["new_total"] == 25 + 50
    assert data["unlocked"] == ["first_deck"]
    assert client.get("/profile").json()["decks_created"] == 1


def test_idle_session_expires(client, ticker):
    sid = _start(client)["session_id"]

    ticker[0] = 30
    assert client.get(f"/sessions/{sid}").status_code == 200
    ticker[0] = 80
    assert client.get(f"/sessions/{sid}").status_code == 200
    ticker[0] = 141
    assert client.get(f"/sessions/{sid}").status_code == 404


def test_finished_sessions_are_pruned_on_start(client, sessions, ticker):
    sid = _start(client, "animals")["session_id"]
    client.post(f"/sessions/{sid}/select", json={"index": 1})
    client.post(f"/sessions/{sid}/rate", json={"rating": "good"})

    ticker[0] = 11
    other = _start(client)["session_id"]

    assert sid not in sessions
    assert other in sessions
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_get_services_builds_once(monkeypatch):
    built = []

    async def slow_open(config):
        await asyncio.sleep(0.01)
        services = MagicMock()
        built.append(services)
        return services

    monkeypatch.setattr(server, "_services", None)
    monkeypatch.setattr(server, "open_services", slow_open)
    monkeypatch.setattr(server, "resolve_config", MagicMock())

    first, second = await asyncio.gather(get_services(), get_services())

    assert len(built) == 1
    assert first is second is built[0]
