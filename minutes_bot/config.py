from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Credentials
    telegram_bot_token: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    assemblyai_api_key: str = ""

    # Telegram
    telegram_api_base: str = "https://api.telegram.org"

    # Speech-to-text and text generation
    transcription_provider: str = "openai"
    transcription_model: str = ""
    generation_provider: str = "openai"
    generation_model: str = ""
    generation_max_tokens: int = 4096
    source_language: str = "ro"
    delivery_language: str = "English"

    # Pipeline
    chunk_minutes: float = 10
    recordings_dir: Path = Path("recordings")
    outputs_dir: Path = Path("outputs")
    ffmpeg_binary: str = "ffmpeg"
    http_timeout_seconds: float = 60.0

    # App config
    api_host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("chunk_minutes")
    @classmethod
    def check_chunk_minutes_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("CHUNK_MINUTES must be a positive number")
        return v

    @field_validator("recordings_dir", "outputs_dir")
    @classmethod
    def check_path_not_empty(cls, v: Path) -> Path:
        if not str(v).strip() or str(v) == ".":
            raise ValueError("Directory roots cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in allowed_levels:
            raise ValueError(f"Invalid log level. Choose from {allowed_levels}")
        return upper_v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except OSError:
        # If .env is unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]
