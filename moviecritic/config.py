"""
Environment configuration

Values come from the process environment (optionally loaded from .env).
Required values are checked once, when the settings are first built, so a
misconfigured deployment fails at startup instead of on the first request.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

from moviecritic.exceptions import ConfigurationError

load_dotenv()

REQUIRED_VARIABLES = ("TMDB_API_URL", "TMDB_API_KEY", "TMDB_IMAGE_URL", "DATABASE_URL")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError([f"{name} (expected an integer, got {raw!r})"])


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() == "true"


@dataclass(frozen=True)
class Settings:
    tmdb_api_url: str
    tmdb_api_key: str
    tmdb_image_url: str
    database_url: str
    tmdb_timeout_seconds: int = 10
    sync_max_attempts: int = 3
    stale_refresh_batch_size: int = 50
    enable_background_jobs: bool = True
    timezone: str = "UTC"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment, raising ConfigurationError on gaps"""
        missing: List[str] = [name for name in REQUIRED_VARIABLES if _env(name) is None]
        if missing:
            raise ConfigurationError(missing)

        return cls(
            tmdb_api_url=_env("TMDB_API_URL").rstrip("/"),
            tmdb_api_key=_env("TMDB_API_KEY"),
            tmdb_image_url=_env("TMDB_IMAGE_URL").rstrip("/"),
            database_url=_env("DATABASE_URL"),
            tmdb_timeout_seconds=_env_int("TMDB_TIMEOUT_SECONDS", 10),
            sync_max_attempts=max(1, _env_int("SYNC_MAX_ATTEMPTS", 3)),
            stale_refresh_batch_size=max(1, _env_int("STALE_REFRESH_BATCH_SIZE", 50)),
            enable_background_jobs=_env_bool("ENABLE_BACKGROUND_JOBS", True),
            timezone=_env("TIMEZONE", "UTC"),
            environment=_env("ENVIRONMENT", "development"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, built on first use"""
    return Settings.from_env()
