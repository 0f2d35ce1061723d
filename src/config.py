from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Chunking (must match the upload client)
    chunk_size_bytes: int = Field(default=1024 * 1024, ge=128 * 1024, le=8 * 1024 * 1024)
    chunk_overlap_seconds: int = Field(default=5, ge=0, le=30)
    max_recording_ms: int = Field(default=3 * 60 * 60 * 1000, gt=0)

    # Upstream speech model calls in flight per recording
    transcription_concurrency: int = Field(default=4, ge=1, le=8)

    # Timestamp classifier calibration
    classifier_delayed_start_window_s: int = Field(default=300, ge=0, le=3600)
    classifier_min_tolerance_s: int = Field(default=120, ge=0, le=3600)

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except OSError:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
