from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studydeck.domain.constants import (
    BACKGROUND_TIMEOUT,
    CARD_CREATED_XP,
    DECK_CREATED_XP,
    DEFAULT_API_BASE_URL,
    DEFAULT_XP_PER_RATING,
    REQUEST_TIMEOUT,
)
from studydeck.domain.models import DifficultyRating


def default_config_file() -> Path:
    return Path.home() / ".config/studydeck/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for studydeck.
    Supports loading from:
    1. Environment variables (STUDYDECK_*)
    2. Config file (~/.config/studydeck/config.toml)
    3. Manual overrides (CLI / server)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYDECK_",
        extra="ignore",
    )

    # Backend selection
    backend: Literal["local", "remote"] = "local"

    # Local backend
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".config/studydeck/data")

    # Remote backend
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: str | None = None
    request_timeout: float = REQUEST_TIMEOUT

    # Background work (review log, profile saves)
    background_timeout: float = BACKGROUND_TIMEOUT

    # Gamification
    xp_per_rating: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_XP_PER_RATING))
    card_created_xp: int = CARD_CREATED_XP
    deck_created_xp: int = DECK_CREATED_XP

    # Logging verbosity, on the same scale as repeated -v flags
    verbose: int = 0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Earlier sources win: overrides, then env, then the TOML file.
        config_file = default_config_file()
        if config_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=config_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_paths(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("xp_per_rating", mode="before")
    @classmethod
    def fill_xp_table(cls, v: Any) -> dict[str, int]:
        table = dict(DEFAULT_XP_PER_RATING)
        for key, value in (v or {}).items():
            # Raises ValueError (-> ValidationError) for unknown ratings
            table[DifficultyRating(key).value] = int(value)
        return table

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studydeck/config.toml (if exists)
    3. Environment variables (STUDYDECK_*)
    4. cli_overrides (passed from Typer or the server)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
