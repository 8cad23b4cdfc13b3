from unittest.mock import AsyncMock

import pytest

from studydeck.application.config import resolve_config
from studydeck.application.factory import Backend, get_backend, open_services
from studydeck.domain.models import GamificationProfile, SessionPhase
from studydeck.infrastructure.adapters.local_store import YamlDeckRepository, YamlProfileStore
from studydeck.infrastructure.adapters.remote import RemoteDataService


def test_local_backend(mock_home, tmp_path):
    backend = get_backend(resolve_config({"data_dir": tmp_path}))

    assert isinstance(backend.repository, YamlDeckRepository)
    assert isinstance(backend.profile_store, YamlProfileStore)


def test_remote_backend_shares_one_client(mock_home):
    backend = get_backend(resolve_config({"backend": "remote", "api_token": "t0k"}))

    assert isinstance(backend.repository, RemoteDataService)
    assert backend.repository is backend.review_logger is backend.profile_store


@pytest.mark.asyncio
async def test_services_wire_session_into_gamification(mock_home, repository):
    store = AsyncMock()
    store.load_profile.return_value = GamificationProfile()
    backend = Backend(
        repository=repository,
        review_logger=AsyncMock(),
        profile_store=store,
        catalog=None,
    )
    services = await open_services(resolve_config(), backend=backend)

    scheduler = services.new_scheduler()
    await scheduler.select_deck("spanish")
    for _ in range(3):
        scheduler.reveal_answer()
        scheduler.rate("good")
    await services.aclose()

    assert scheduler.phase is SessionPhase.FINISHED
    assert services.gamification.profile.sessions_completed == 1
    assert backend.review_logger.log_review.await_count == 3
    store.save_profile.assert_awaited()
