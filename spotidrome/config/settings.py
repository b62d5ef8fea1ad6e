"""Configuration management using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation.

The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- CredentialsConfig: Navidrome and Spotify credentials
- APIConfig: Batch sizes, timeouts, retries and rate limits per service
- MatchingConfig: Matching cascade defaults
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("spotidrome.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """API credentials and authentication settings."""

    # Navidrome (Subsonic API) credentials
    navidrome_url: str = "http://localhost:4533"
    navidrome_username: str = ""
    navidrome_password: str = ""

    # Spotify credentials
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_redirect_uri: str = "http://localhost:8888/callback"


class APIConfig(BaseModel):
    """External API configuration and rate limiting."""

    # Navidrome API Configuration
    navidrome_batch_size: int = 50
    navidrome_timeout: float = 30.0
    navidrome_retry_count: int = 3
    navidrome_rate_limit_requests: int = 100
    navidrome_rate_limit_window: float = 1.0  # Seconds
    navidrome_client_name: str = "spotidrome"
    navidrome_api_version: str = "1.16.1"

    # Spotify API Configuration
    spotify_batch_size: int = 50
    spotify_retry_count: int = 3
    spotify_rate_limit_requests: int = 30
    spotify_rate_limit_window: float = 60.0  # Seconds
    spotify_market: str = "US"


class MatchingConfig(BaseModel):
    """Defaults for the ISRC -> strict -> fuzzy matching cascade."""

    enable_isrc: bool = True
    enable_strict: bool = True
    enable_fuzzy: bool = True
    fuzzy_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    tie_margin: float = Field(default=0.02, ge=0.0, le=1.0)
    search_limit: int = 20


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: NAVIDROME_URL, CONSOLE_LOG_LEVEL, FUZZY_THRESHOLD
    - Nested: CREDENTIALS__NAVIDROME_URL, LOGGING__CONSOLE_LEVEL, MATCHING__FUZZY_THRESHOLD

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Nested configuration groups
    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    matching: MatchingConfig = MatchingConfig()

    # Top-level settings
    data_dir: Path = Path("data")

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (NAVIDROME_URL) and maps them to the
        nested structure expected by the models (credentials.navidrome_url).
        """
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}

        mappings = {
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
            "credentials": {
                "navidrome_url": "navidrome_url",
                "navidrome_username": "navidrome_username",
                "navidrome_password": "navidrome_password",
                "spotify_client_id": "spotify_client_id",
                "spotify_client_secret": "spotify_client_secret",
                "spotify_redirect_uri": "spotify_redirect_uri",
            },
            "matching": {
                "fuzzy_threshold": "fuzzy_threshold",
                "match_tie_margin": "tie_margin",
            },
        }
        for section, section_mapping in mappings.items():
            for env_key, field_key in section_mapping.items():
                if env_key in data:
                    transformed.setdefault(section, {})[field_key] = data.pop(env_key)

        # Merge transformed nested structure back into data
        for section, values in transformed.items():
            existing = data.get(section)
            if isinstance(existing, dict):
                values = {**existing, **values}
            data[section] = values

        return data


# Singleton instance for application use
settings = Settings()
