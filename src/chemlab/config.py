"""Runtime configuration.

Values come from ``CHEMLAB_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from chemlab.constants import SETTLE_SECONDS

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Settings for the API server and the CLI."""

    database_path: Path = Field(
        default=Path("database/database.sqlite"),
        description="SQLite file holding experiments and submissions.",
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Insert the demo experiment and submissions into an empty database.",
    )
    settle_seconds: float = Field(
        default=SETTLE_SECONDS,
        ge=0.0,
        description="Delay between starting a mix and the reaction result.",
    )
    session_idle_seconds: float = Field(
        default=1800.0,
        gt=0.0,
        description="Idle time after which a live session is closed and dropped.",
    )
    max_sessions: int = Field(
        default=1000,
        ge=1,
        description="Live sessions kept before the least recently used is evicted.",
    )
    cors_origins: list[str] = Field(default=["*"])
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")

    model_config = {
        "env_prefix": "CHEMLAB_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
