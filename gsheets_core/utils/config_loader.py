"""
Configuration loader with type-safe Pydantic models.
Loads and validates environment variables for the spreadsheet core.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gsheets_core.utils.retry import RetryConfig

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Load .env file if it exists
env_path = CONFIG_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)


class SheetsConfig(BaseSettings):
    """
    Spreadsheet core configuration."""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True
    )

    token_path: Path = Field(
        default=CONFIG_DIR / "google_sheets_token.json",
        alias="SHEETS_TOKEN_PATH"
    )

    # Rate limiting (admission controller)
    rate_limit_max_calls: int = Field(default=60, ge=1, alias="SHEETS_RATE_LIMIT_MAX_CALLS")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, alias="SHEETS_RATE_LIMIT_WINDOW_SECONDS")

    # Retry executor
    retry_max_retries: int = Field(default=3, ge=0, alias="SHEETS_RETRY_MAX_RETRIES")
    retry_base_delay: float = Field(default=1.0, ge=0, alias="SHEETS_RETRY_BASE_DELAY")
    retry_max_delay: float = Field(default=10.0, ge=0, alias="SHEETS_RETRY_MAX_DELAY")
    retry_backoff_multiplier: float = Field(default=2.0, ge=1, alias="SHEETS_RETRY_BACKOFF_MULTIPLIER")

    # Logging
    log_level: str = Field(default="INFO", alias="APP_LOG_LEVEL")
    log_dir: Path = Field(default=PROJECT_ROOT / "logs", alias="SHEETS_LOG_DIR")
    log_to_file: bool = Field(default=False, alias="SHEETS_LOG_TO_FILE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    def retry_config(self) -> RetryConfig:
        """Retry settings for the executor."""
        return RetryConfig(
            max_retries=self.retry_max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            backoff_multiplier=self.retry_backoff_multiplier
        )


# Global config instance
_config: Optional[SheetsConfig] = None


def get_config() -> SheetsConfig:
    """
    Get the global configuration.

    Returns:
        SheetsConfig instance
    """
    global _config

    if _config is None:
        _config = SheetsConfig()
        logger.debug(
            f"Loaded config: rate limit {_config.rate_limit_max_calls}/"
            f"{_config.rate_limit_window_seconds}s, max retries {_config.retry_max_retries}"
        )

    return _config


def reload_config() -> SheetsConfig:
    """
Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
