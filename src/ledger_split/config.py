"""Configuration management for ledger-split."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_path: Path = Path.home() / ".ledger_split" / "ledger_split.db"

    # Currencies
    base_currency: str = "CAD"  # Exchange rates are stored relative to this
    supported_currencies: list[str] = Field(
        default_factory=lambda: ["CAD", "USD", "EUR", "PLN"]
    )

    # Exchange rate API
    exchange_rate_url: str = "https://open.er-api.com/v6/latest"
    http_timeout: float = 30.0

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the LEDGER_SPLIT_* variables in "
            f"your environment or .env file.\n"
            f"Error: {e}"
        ) from e
