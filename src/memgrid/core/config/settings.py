from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Global application-level configuration.

    This class is the single source of truth for:
    - environment selection
    - logging behavior
    - game rules and playback timing
    - leaderboard storage
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMGRID_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Game rules --------------------------------------------------

    grid_tiles: int = Field(default=9, ge=1, description="Number of tiles on the board")
    save_threshold: int = Field(
        default=50,
        ge=0,
        description="Scores strictly above this are offered for the leaderboard",
    )
    leaderboard_limit: int = Field(default=10, ge=1, le=100)

    # Optional RNG seed (None -> system entropy)
    default_seed: int | None = Field(default=None, description="Optional RNG seed")

    # ---- Timing (milliseconds) --------------------------------------

    initial_delay_ms: int = Field(default=500, ge=0)
    highlight_ms: int = Field(default=600, ge=0)
    gap_ms: int = Field(default=200, ge=0)
    round_advance_ms: int = Field(default=1000, ge=0)
    tap_feedback_ms: int = Field(default=300, ge=0)
    flash_step_ms: int = Field(default=300, ge=0)
    flash_count: int = Field(default=2, ge=1, description="Times the expected tile flashes on game over")

    # ---- Leaderboard storage ----------------------------------------

    leaderboard_backend: Literal["memory", "jsonl"] = "memory"
    leaderboard_dir: Path = Field(
        default=Path("data"),
        description="Root directory for the JSONL leaderboard store",
    )


# Singleton settings object
settings = AppSettings()
