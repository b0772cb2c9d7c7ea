"""Configuration management for split-ledger."""

from decimal import Decimal
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database path
    database_path: Path = Path.home() / ".split_ledger" / "split_ledger.db"

    # Recurring rent (inserted on the 1st of every month)
    recurring_rent_amount: Decimal = Decimal("30000")
    recurring_rent_payer: str = "Shantanu"
    recurring_rent_participants: list[str] = ["Shantanu", "Sanket", "Om"]
    recurring_timezone: str = "Asia/Kolkata"

    # Reports
    spending_window_days: int = 30

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
            f"Failed to load settings. Check your .env file and environment "
            f"variables.\n"
            f"Error: {e}"
        ) from e
