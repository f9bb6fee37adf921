import random
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cardwise.domain.models import StudyMode


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/cardwise/config.toml",
        Path.home() / ".cardwise.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for cardwise.
    Supports loading from:
    1. Environment variables (CARDWISE_*)
    2. Config file (~/.config/cardwise/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CARDWISE_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/cardwise")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cardwise/logs")

    # Study
    user_id: str = "local"
    default_mode: StudyMode = StudyMode.MIXED
    order: Literal["sequential", "random", "due"] = "sequential"
    seed: int | None = None

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = 8787

    verbose: int = 1

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

        # Find the first existing config file
        toml_file = next((f for f in config_files() if f.exists()), None)

        # Earlier sources win: CLI overrides, then env, then the TOML file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("default_mode", mode="before")
    @classmethod
    def parse_mode(cls, v: Any) -> StudyMode:
        return StudyMode.parse(v)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cardwise/config.toml (if exists)
    3. Environment variables (CARDWISE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)


def make_rng(config: AppConfig) -> random.Random:
    """RNG for shuffled study order; seeded when the config pins a seed."""
    return random.Random(config.seed)
