import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from studydeck.application.config import resolve_config
from studydeck.application.factory import StudyServices, open_services
from studydeck.application.gamification import ActivityResult
from studydeck.application.scheduler import StudyScheduler
from studydeck.application.sessions import SessionRegistry
from studydeck.consts import VERSION
from studydeck.domain.errors import (
    DeckNotFoundError,
    EmptyDeckError,
    InvalidCardError,
    InvalidTransitionError,
    RemoteServiceError,
    StudyDeckError,
)
from studydeck.domain.models import (
    ChoiceCard,
    DifficultyRating,
    SessionPhase,
    SessionSummary,
    XpResult,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studydeck.server")

_services: StudyServices | None = None
_services_lock = asyncio.Lock()
_sessions = SessionRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"studydeck server v{VERSION} starting up...")
    yield
    # Shutdown
    global _services
    if _services is not None:
        await _services.aclose()
        _services = None
    _sessions.clear()
    logger.info("studydeck server shutting down...")


app = FastAPI(
    title="studydeck server",
    description="Study sessions and gamification for the flashcard app.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


async def get_services() -> StudyServices:
    global _services
    if _services is None:
        async with _services_lock:
            if _services is None:
                _services = await open_services(resolve_config())
    return _services


def get_sessions() -> SessionRegistry:
    return _sessions


_ERROR_STATUS: list[tuple[type[StudyDeckError], int]] = [
    (DeckNotFoundError, 404),
    (EmptyDeckError, 422),
    (InvalidCardError, 422),
    (InvalidTransitionError, 409),
    (RemoteServiceError, 502),
]


@app.exception_handler(StudyDeckError)
async def study_error_handler(request: Request, exc: StudyDeckError):
    status = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CardView(BaseModel):
    id: str
    type: Literal["open", "choice"]
    question: str
    alternatives: list[str] | None = None
    tags: list[str] = []
    difficulty: int
    image_url: str | None = None
    audio_url: str | None = None
    # Only filled once the answer is revealed / an alternative chosen
    answer: str | None = None
    correct_alternative: int | None = None


class SummaryView(BaseModel):
    again: int
    hard: int
    good: int
    easy: int
    total: int
    remembered_percent: int
    not_remembered_percent: int
    xp_awarded: int
    study_time_seconds: int


class XpView(BaseModel):
    new_total: int
    leveled_up: bool
    new_level: int | None = None


class ActivityView(BaseModel):
    xp: XpView
    unlocked: list[str]


class SessionView(BaseModel):
    session_id: str
    deck_id: str | None
    phase: SessionPhase
    index: int
    total_cards: int
    progress: float
    counts: dict[str, int]
    card: CardView | None = None
    selected_alternative: int | None = None
    is_correct: bool | None = None
    summary: SummaryView | None = None
    # XP and achievements granted when the session finished
    rewards: ActivityView | None = None


class StartSessionRequest(BaseModel):
    deck_id: str


class SelectRequest(BaseModel):
    index: int


class RateRequest(BaseModel):
    rating: DifficultyRating


class XpRequest(BaseModel):
    amount: int = Field(ge=0)


class StreakRequest(BaseModel):
    days: int = Field(ge=0)


class AchievementView(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    xp_reward: int
    unlocked: bool
    unlocked_at: datetime | None = None


class ProfileView(BaseModel):
    xp: int
    level: int
    xp_to_next_level: int
    streak: int
    sessions_completed: int
    cards_reviewed: int
    cards_created: int
    decks_created: int
    achievements: list[AchievementView]


def _card_view(scheduler: StudyScheduler) -> CardView | None:
    study_card = scheduler.current_card
    if study_card is None:
        return None
    card = study_card.card
    revealed = scheduler.revealed
    view = CardView(
        id=card.id,
        type="choice" if isinstance(card, ChoiceCard) else "open",
        question=card.question,
        tags=list(card.tags),
        difficulty=card.difficulty,
        image_url=card.image_url,
        audio_url=card.audio_url,
        answer=card.answer if revealed else None,
    )
    if isinstance(card, ChoiceCard):
        view.alternatives = list(card.alternatives)
        if revealed:
            view.correct_alternative = card.correct_alternative
    return view


def _summary_view(summary: SessionSummary | None) -> SummaryView | None:
    if summary is None:
        return None
    return SummaryView(
        again=summary.again,
        hard=summary.hard,
        good=summary.good,
        easy=summary.easy,
        total=summary.total,
        remembered_percent=summary.remembered_percent,
        not_remembered_percent=summary.not_remembered_percent,
        xp_awarded=summary.xp_awarded,
        study_time_seconds=summary.study_time_seconds,
    )


def _session_view(session_id: str, scheduler: StudyScheduler) -> SessionView:
    counts = scheduler.counts
    result = scheduler.session_result
    return SessionView(
        session_id=session_id,
        deck_id=scheduler.deck_id,
        phase=scheduler.phase,
        index=scheduler.index,
        total_cards=len(scheduler.cards),
        progress=scheduler.progress,
        counts={r.value: counts.get(r) for r in DifficultyRating},
        card=_card_view(scheduler),
        selected_alternative=scheduler.selected_alternative,
        is_correct=scheduler.is_correct,
        summary=_summary_view(scheduler.summary),
        rewards=_activity_view(result) if result else None,
    )


def _xp_view(result: XpResult) -> XpView:
    return XpView(
        new_total=result.new_total, leveled_up=result.leveled_up, new_level=result.new_level
    )


def _activity_view(result: ActivityResult) -> ActivityView:
    return ActivityView(xp=_xp_view(result.xp), unlocked=result.unlocked)


def _get_session(session_id: str, sessions: SessionRegistry) -> StudyScheduler:
    scheduler = sessions.get(session_id)
    if scheduler is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return scheduler


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/sessions", response_model=SessionView, status_code=201)
async def start_session(
    req: StartSessionRequest,
    services: StudyServices = Depends(get_services),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Fetch a deck and start presenting its first card."""
    scheduler = services.new_scheduler()
    await scheduler.select_deck(req.deck_id)
    session_id = sessions.add(scheduler)
    logger.info(f"Session {session_id} started on deck '{req.deck_id}'")
    return _session_view(session_id, scheduler)


@app.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str, sessions: SessionRegistry = Depends(get_sessions)
):
    return _session_view(session_id, _get_session(session_id, sessions))


@app.post("/sessions/{session_id}/reveal", response_model=SessionView)
async def reveal_answer(
    session_id: str, sessions: SessionRegistry = Depends(get_sessions)
):
    scheduler = _get_session(session_id, sessions)
    scheduler.reveal_answer()
    return _session_view(session_id, scheduler)


@app.post("/sessions/{session_id}/select", response_model=SessionView)
async def select_alternative(
    session_id: str,
    req: SelectRequest,
    sessions: SessionRegistry = Depends(get_sessions),
):
    scheduler = _get_session(session_id, sessions)
    scheduler.select_alternative(req.index)
    return _session_view(session_id, scheduler)


@app.post("/sessions/{session_id}/rate", response_model=SessionView)
async def rate_card(
    session_id: str,
    req: RateRequest,
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Rate the current card; the review log is written in the background."""
    scheduler = _get_session(session_id, sessions)
    scheduler.rate(req.rating)
    return _session_view(session_id, scheduler)


@app.post("/sessions/{session_id}/restart", response_model=SessionView)
async def restart_session(
    session_id: str, sessions: SessionRegistry = Depends(get_sessions)
):
    scheduler = _get_session(session_id, sessions)
    scheduler.restart()
    return _session_view(session_id, scheduler)


@app.delete("/sessions/{session_id}", status_code=204)
async def exit_session(
    session_id: str, sessions: SessionRegistry = Depends(get_sessions)
):
    """Discard the session immediately; pending review logs finish on their own."""
    scheduler = sessions.pop(session_id)
    if scheduler is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    scheduler.exit()


@app.get("/profile", response_model=ProfileView)
async def get_profile(services: StudyServices = Depends(get_services)):
    gamification = services.gamification
    profile = gamification.profile

    achievements = []
    for achievement in profile.achievements.values():
        definition = gamification.definition(achievement.id)
        achievements.append(
            AchievementView(
                id=achievement.id,
                name=definition.name if definition else achievement.id,
                description=definition.description if definition else "",
                icon=definition.icon if definition else "🏆",
                xp_reward=definition.xp_reward if definition else 0,
                unlocked=achievement.unlocked,
                unlocked_at=achievement.unlocked_at,
            )
        )

    return ProfileView(
        xp=profile.xp,
        level=profile.level,
        xp_to_next_level=profile.xp_to_next_level,
        streak=profile.streak,
        sessions_completed=profile.sessions_completed,
        cards_reviewed=profile.cards_reviewed,
        cards_created=profile.cards_created,
        decks_created=profile.decks_created,
        achievements=achievements,
    )


@app.post("/profile/xp", response_model=XpView)
async def add_xp(req: XpRequest, services: StudyServices = Depends(get_services)):
    return _xp_view(services.gamification.apply_xp(req.amount))


@app.put("/profile/streak")
async def update_streak(req: StreakRequest, services: StudyServices = Depends(get_services)):
    """Set the streak computed by the caller (consecutive study days)."""
    unlocked = services.gamification.update_streak(req.days)
    return {"streak": req.days, "unlocked": unlocked}


@app.post("/profile/achievements/{achievement_id}/unlock")
async def unlock_achievement(
    achievement_id: str, services: StudyServices = Depends(get_services)
):
    newly_unlocked = services.gamification.unlock_achievement(achievement_id)
    achievement = services.gamification.profile.achievements[achievement_id]
    return {
        "id": achievement_id,
        "newly_unlocked": newly_unlocked,
        "unlocked_at": achievement.unlocked_at,
    }


@app.post("/activity/card-created", response_model=ActivityView)
async def card_created(services: StudyServices = Depends(get_services)):
    return _activity_view(services.gamification.record_card_created())


@app.post("/activity/deck-created", response_model=ActivityView)
async def deck_created(services: StudyServices = Depends(get_services)):
    return _activity_view(services.gamification.record_deck_created())
