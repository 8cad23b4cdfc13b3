"""studydeck CLI: interactive study sessions, profile and config commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from studydeck.application.config import AppConfig, resolve_config
from studydeck.application.factory import StudyServices, open_services
from studydeck.application.scheduler import StudyScheduler
from studydeck.domain.errors import StudyDeckError
from studydeck.domain.models import (
    ChoiceCard,
    DifficultyRating,
    SessionPhase,
    SessionSummary,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studydeck: flashcard study sessions with XP, levels and achievements.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

profile_app = typer.Typer(help="Inspect and update the gamification profile.")
app.add_typer(profile_app, name="profile")

config_app = typer.Typer(help="Manage studydeck configuration.")
app.add_typer(config_app, name="config")

RATING_KEYS = {
    "1": DifficultyRating.AGAIN,
    "2": DifficultyRating.HARD,
    "3": DifficultyRating.GOOD,
    "4": DifficultyRating.EASY,
}


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for studydeck."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        logging.getLogger("studydeck").setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger("studydeck").setLevel(logging.INFO)


def _resolve_with_overrides(ctx: typer.Context, **overrides: Any) -> AppConfig:
    """Resolve config with CLI overrides; -v on the command line beats STUDYDECK_VERBOSE."""
    overrides["verbose"] = (ctx.obj or {}).get("verbose") or None
    try:
        config = resolve_config(overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red")
        raise typer.Exit(2) from None
    _configure_logging(config.verbose)
    return config


BackendOption = Annotated[str | None, typer.Option(help="Data backend: local or remote.")]
DataDirOption = Annotated[
    Path | None, typer.Option(help="Directory holding decks.yaml / profile.yaml.")
]
ApiUrlOption = Annotated[str | None, typer.Option(help="Base URL of the remote data service.")]


# ---------------------------------------------------------------------------
# Study
# ---------------------------------------------------------------------------


async def _ask(text: str, default: str | None = None) -> str:
    # Prompt in a worker thread so background review logging keeps running.
    return await asyncio.to_thread(
        typer.prompt, text, default=default, show_default=False
    )


async def _ask_alternative(card: ChoiceCard) -> int | None:
    for i, alternative in enumerate(card.alternatives):
        typer.echo(f"  {chr(65 + i)}. {alternative}")
    while True:
        raw = (await _ask("Your answer (letter, or q to quit)")).strip().upper()
        if raw == "Q":
            return None
        if len(raw) == 1 and "A" <= raw < chr(65 + len(card.alternatives)):
            return ord(raw) - 65
        typer.secho("Pick one of the letters above.", fg="yellow")


async def _ask_rating() -> DifficultyRating | None:
    while True:
        raw = (
            await _ask("How well did you remember? [1] again [2] hard [3] good [4] easy (q to quit)")
        ).strip().lower()
        if raw == "q":
            return None
        if raw in RATING_KEYS:
            return RATING_KEYS[raw]
        try:
            return DifficultyRating(raw)
        except ValueError:
            typer.secho("Answer 1-4 or again/hard/good/easy.", fg="yellow")


async def _study_card(scheduler: StudyScheduler) -> bool:
    """Walk one card through presenting -> awaiting_rating -> rated. False means quit."""
    study_card = scheduler.current_card
    card = study_card.card
    total = len(scheduler.cards)
    typer.secho(f"\n[{scheduler.index + 1}/{total}] {card.question}", bold=True)

    if isinstance(card, ChoiceCard):
        choice = await _ask_alternative(card)
        if choice is None:
            return False
        if scheduler.select_alternative(choice):
            typer.secho("Correct!", fg="green")
        else:
            right = card.alternatives[card.correct_alternative]
            typer.secho(f"Not quite. Correct answer: {right}", fg="red")
        if card.answer:
            typer.echo(card.answer)
    else:
        raw = await _ask("Press Enter to reveal the answer (q to quit)", default="")
        if raw.strip().lower() == "q":
            return False
        scheduler.reveal_answer()
        typer.echo(f"Answer: {card.answer}")

    rating = await _ask_rating()
    if rating is None:
        return False
    scheduler.rate(rating)
    return True


def _print_summary(summary: SessionSummary, services: StudyServices) -> None:
    profile = services.gamification.profile
    typer.secho("\nSession complete!", fg="green", bold=True)
    typer.echo(
        f"  again: {summary.again}  hard: {summary.hard}  "
        f"good: {summary.good}  easy: {summary.easy}  (total {summary.total})"
    )
    typer.echo(f"  Remembered: {summary.remembered_percent}%")
    typer.echo(f"  XP earned: +{summary.xp_awarded}")
    typer.echo(
        f"  Level {profile.level}, {profile.xp} XP ({profile.xp_to_next_level} to next level)"
    )


async def _run_study(config: AppConfig, deck_id: str) -> int:
    services = await open_services(config)
    try:
        scheduler = services.new_scheduler()
        try:
            await scheduler.select_deck(deck_id)
        except StudyDeckError as e:
            typer.secho(str(e), fg="red")
            return 1

        while True:
            while scheduler.phase is not SessionPhase.FINISHED:
                if not await _study_card(scheduler):
                    scheduler.exit()
                    typer.echo("Session abandoned.")
                    return 0

            _print_summary(scheduler.summary, services)
            result = scheduler.session_result
            if result is not None:
                if result.xp.leveled_up:
                    typer.secho(
                        f"  Level up! You are now level {result.xp.new_level}", fg="cyan"
                    )
                for achievement_id in result.unlocked:
                    definition = services.gamification.definition(achievement_id)
                    name = definition.name if definition else achievement_id
                    typer.secho(f"  Achievement unlocked: {name}", fg="magenta")

            again = await asyncio.to_thread(typer.confirm, "Study this deck again?", default=False)
            if not again:
                return 0
            scheduler.restart()
    finally:
        await services.aclose()


@app.command()
def study(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Id of the deck to study.")],
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    api_url: ApiUrlOption = None,
):
    """[bold green]Study[/bold green] a deck card by card."""
    config = _resolve_with_overrides(
        ctx, backend=backend, data_dir=data_dir, api_base_url=api_url
    )
    code = asyncio.run(_run_study(config, deck_id))
    if code:
        raise typer.Exit(code)


# ---------------------------------------------------------------------------
# Profile subgroup
# ---------------------------------------------------------------------------


@profile_app.command("show")
def profile_show(
    ctx: typer.Context,
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    api_url: ApiUrlOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show XP, level, streak and achievements."""
    config = _resolve_with_overrides(
        ctx, backend=backend, data_dir=data_dir, api_base_url=api_url
    )

    async def run() -> StudyServices:
        services = await open_services(config)
        await services.aclose()
        return services

    services = asyncio.run(run())
    gamification = services.gamification
    profile = gamification.profile

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "xp": profile.xp,
                    "level": profile.level,
                    "xp_to_next_level": profile.xp_to_next_level,
                    "streak": profile.streak,
                    "sessions_completed": profile.sessions_completed,
                    "achievements": {
                        a.id: a.unlocked for a in profile.achievements.values()
                    },
                },
                indent=2,
            )
        )
        return

    typer.echo(f"Level {profile.level}  XP {profile.xp}  ({profile.xp_to_next_level} to next)")
    typer.echo(f"Streak: {profile.streak} day(s)  Sessions: {profile.sessions_completed}")
    for achievement in profile.achievements.values():
        definition = gamification.definition(achievement.id)
        name = definition.name if definition else achievement.id
        mark = typer.style("x", fg="green") if achievement.unlocked else " "
        typer.echo(f"  [{mark}] {name}")


@profile_app.command("streak")
def profile_streak(
    ctx: typer.Context,
    days: Annotated[int, typer.Argument(min=0, help="Consecutive study days.")],
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    api_url: ApiUrlOption = None,
):
    """Set the study streak."""
    config = _resolve_with_overrides(
        ctx, backend=backend, data_dir=data_dir, api_base_url=api_url
    )

    async def run() -> list[str]:
        services = await open_services(config)
        try:
            return services.gamification.update_streak(days)
        finally:
            await services.aclose()

    unlocked = asyncio.run(run())
    typer.echo(f"Streak set to {days} day(s).")
    for achievement_id in unlocked:
        typer.secho(f"Achievement unlocked: {achievement_id}", fg="magenta")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    if d.get("api_token"):
        d["api_token"] = "***"
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API used by the mobile client."""
    import uvicorn

    uvicorn.run("studydeck.server:app", host=host, port=port, reload=reload)


def main():
    app()
