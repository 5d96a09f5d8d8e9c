"""
Library Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Invalid config is rejected the first time settings are loaded.
"""

import sys
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "console")


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Settings loaded from RECEIPT_VALIDATOR_* environment variables."""

    service_name: str = "receipt-validator"
    version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_VALIDATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_logging_config(self) -> "Settings":
        """FAIL FAST: reject unknown log levels and formats."""
        errors: list[str] = []

        if self.log_level.upper() not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got: {self.log_level}")
        if self.log_format.lower() not in _LOG_FORMATS:
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CONFIGURATION ERROR",
                    "=" * 60,
                    *[f"  - {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Load and cache library settings on first use.

    Importing the library never reads the environment; only code that needs
    settings (setup_logging) does. Call get_settings.cache_clear() to reload.
    """
    return Settings()
