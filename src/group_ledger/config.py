"""Configuration management for group-ledger."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_PLACEHOLDER_NAMES = ["Pessoa 1", "Pessoa 2", "Pessoa"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GROUP_LEDGER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Snapshot used when the CLI is called without a path
    snapshot_path: Path | None = None

    # Display settings
    currency_symbol: str = "R$"
    hide_values: bool = False  # Mask amounts in output

    # Scope used when the CLI is called without --window
    default_window: Literal["current_month", "all"] = "current_month"

    # Profiles with these names were never set up and are not participants
    placeholder_names: list[str] = DEFAULT_PLACEHOLDER_NAMES


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the GROUP_LEDGER_* variables "
            f"in your environment or .env file.\n"
            f"Error: {e}"
        ) from e
