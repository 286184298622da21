"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Reelsmith configuration loaded from environment variables."""

    model_config = {"env_prefix": "REELSMITH_", "env_file": ".env", "extra": "ignore"}

    # LLM (planner visual descriptions)
    openai_api_key: str = ""
    openai_model: str = "gpt-4"

    # Planning
    target_segment_duration: float = 4.0
    max_duration_secs: float = 600.0

    # Generation provider
    max_fan_out: int = 4
    provider_max_retries: int = 2
    provider_backoff_base: float = 1.0
    provider_backoff_max: float = 30.0
    provider_timeout_secs: float = 300.0
    prefer_reference_over_description: bool = True
    consistency: Literal["low", "medium", "high"] = "high"

    # Directories
    output_dir: Path = Path("/tmp/reelsmith/output")
    job_store_dir: Path | None = None

    # Rendering: "dryrun" yields reference strings only, "ffmpeg" encodes local files
    render_backend: Literal["dryrun", "ffmpeg"] = "dryrun"
    ffmpeg_binary: str = "ffmpeg"
    output_video_codec: str = "libx264"
    output_audio_codec: str = "aac"
    output_crf: int = 23
    output_preset: str = "medium"
    render_timeout_secs: float = 600.0

    # Logging
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
