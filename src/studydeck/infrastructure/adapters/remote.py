import logging
from typing import Any

import httpx

from studydeck.domain.constants import AUTH_TOKEN_HEADER, REQUEST_TIMEOUT
from studydeck.domain.errors import DeckNotFoundError, RemoteServiceError
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

from .payloads import (
    card_from_payload,
    definition_from_payload,
    event_to_payload,
    profile_from_payload,
    profile_to_payload,
)


class RemoteDataService(CardRepository, ReviewLogger, ProfileStore, AchievementCatalog):
    """Adapter for the remote data service (JSON over HTTP)."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        token: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Root URL of the data service.
            token: Sent as the X-Auth-Token header when set.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.logger.debug(f"RemoteDataService initialized with base_url={self.base_url}")

    async def fetch_cards(self, deck_id: str) -> list[Card]:
        try:
            data = await self._request("GET", f"/api/cards/deck/{deck_id}")
        except RemoteServiceError as e:
            if e.status_code == 404:
                raise DeckNotFoundError(deck_id) from e
            raise
        if not isinstance(data, list):
            raise RemoteServiceError(f"Expected a list of cards for deck '{deck_id}'")
        return [card_from_payload(item, deck_id=deck_id) for item in data]

    async def log_review(self, event: ReviewEvent) -> None:
        await self._request("POST", "/api/study/review", json=event_to_payload(event))
        self.logger.debug(f"Logged review {event.event_id} for card {event.card_id}")

    async def load_profile(self) -> GamificationProfile:
        data = await self._request("GET", "/api/gamification/stats")
        return profile_from_payload(data)

    async def save_profile(self, profile: GamificationProfile) -> None:
        await self._request("PUT", "/api/gamification/stats", json=profile_to_payload(profile))

    async def load_achievement_catalog(self) -> list[AchievementDefinition]:
        data = await self._request("GET", "/api/gamification/achievements")
        return [definition_from_payload(item) for item in data or []]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers[AUTH_TOKEN_HEADER] = self._token.strip()
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            )

        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            raise RemoteServiceError(
                f"{method} {path} returned {resp.status_code}: {self._error_message(resp)}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteServiceError(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text or resp.reason_phrase
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return resp.text
