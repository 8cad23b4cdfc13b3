"""
Service Factory
Centralizes the logic for selecting the collaborator adapters and wiring the
study core around them.
"""

import logging
from dataclasses import dataclass

from studydeck.application.background import BackgroundDispatcher
from studydeck.application.config import AppConfig
from studydeck.application.gamification import GamificationAccumulator
from studydeck.application.review_queue import QueuedReviewLogger
from studydeck.application.scheduler import StudyScheduler
from studydeck.application.summary import SessionSummaryAggregator
from studydeck.domain.ports import (
    AchievementCatalog,
    CardRepository,
    ProfileStore,
    ReviewLogger,
)
from studydeck.infrastructure.adapters.local_store import (
    StaticAchievementCatalog,
    YamlDeckRepository,
    YamlProfileStore,
    YamlReviewLog,
)
from studydeck.infrastructure.adapters.remote import RemoteDataService

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    repository: CardRepository
    review_logger: ReviewLogger
    profile_store: ProfileStore
    catalog: AchievementCatalog


@dataclass
class StudyServices:
    """Everything a driving adapter (CLI, server) needs, built once per process."""

    config: AppConfig
    backend: Backend
    review_log: QueuedReviewLogger
    dispatcher: BackgroundDispatcher
    aggregator: SessionSummaryAggregator
    gamification: GamificationAccumulator

    def new_scheduler(self) -> StudyScheduler:
        return StudyScheduler(
            repository=self.backend.repository,
            review_logger=self.review_log,
            dispatcher=self.dispatcher,
            aggregator=self.aggregator,
            gamification=self.gamification,
        )

    async def aclose(self) -> None:
        """Let detached work finish, retry queued reviews, then release connections."""
        await self.dispatcher.drain()
        await self.review_log.flush()
        if isinstance(self.backend.repository, RemoteDataService):
            await self.backend.repository.aclose()


def get_backend(config: AppConfig) -> Backend:
    """
    Returns the collaborator adapters for the configured backend.
    """
    if config.backend == "remote":
        remote = RemoteDataService(
            base_url=config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout,
        )
        logger.debug(f"Backend: remote ({config.api_base_url})")
        return Backend(
            repository=remote, review_logger=remote, profile_store=remote, catalog=remote
        )

    logger.debug(f"Backend: local ({config.data_dir})")
    return Backend(
        repository=YamlDeckRepository(config.data_dir),
        review_logger=YamlReviewLog(config.data_dir),
        profile_store=YamlProfileStore(config.data_dir),
        catalog=StaticAchievementCatalog(),
    )


def build_services(config: AppConfig, backend: Backend | None = None) -> StudyServices:
    backend = backend or get_backend(config)
    dispatcher = BackgroundDispatcher(timeout=config.background_timeout)
    gamification = GamificationAccumulator(
        store=backend.profile_store,
        catalog=backend.catalog,
        dispatcher=dispatcher,
        card_created_xp=config.card_created_xp,
        deck_created_xp=config.deck_created_xp,
    )
    return StudyServices(
        config=config,
        backend=backend,
        review_log=QueuedReviewLogger(backend.review_logger),
        dispatcher=dispatcher,
        aggregator=SessionSummaryAggregator(config.xp_per_rating),
        gamification=gamification,
    )


async def open_services(config: AppConfig, backend: Backend | None = None) -> StudyServices:
    """Build the services and load the gamification profile."""
    services = build_services(config, backend)
    await services.gamification.load()
    return services
