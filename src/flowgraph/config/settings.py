"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed environment-backed settings for flowgraph."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    json_logs: bool = False

    # Layout defaults; callers can still override each one per call.
    direction: str = "TB"
    node_spacing: float = Field(default=40, ge=0)
    rank_spacing: float = Field(default=60, ge=0)
    resolve_overlaps: bool = True
