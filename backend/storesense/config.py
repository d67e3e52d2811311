# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Application Configuration
All settings are loaded from environment variables with defaults tuned
for retail-scale geofences. Override via backend/.env or environment.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Directory Query ─────────────────────────────────────────────────────
    # Radius around the fix used to pull candidate stores from the directory
    search_radius_meters: float = 150.0

    # ─── Sensor Timeouts ─────────────────────────────────────────────────────
    position_timeout_seconds: float = 5.0
    radio_timeout_seconds: float = 3.0
    # Upper bound on the joint wait for both sensors
    max_sensor_wait_seconds: float = 6.0

    # ─── Confirmation Workflow ───────────────────────────────────────────────
    # First-time detections at or above this confidence skip confirmation
    auto_accept_confidence: int = 95
    # Previously confirmed stores are silently accepted at or above this floor
    confirmed_store_floor: int = 0

    # ─── Continuous Mode ─────────────────────────────────────────────────────
    continuous_interval_seconds: float = 10.0

    # ─── Radio Matching ──────────────────────────────────────────────────────
    # Observations weaker than this are dropped before matching; None keeps all
    min_signal_dbm: Optional[float] = None

    # ─── Confirmed-Store Memory ──────────────────────────────────────────────
    confirmed_memory_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    confirmed_memory_key: str = "storesense:confirmed"

    # ─── Logging ─────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ─── Server ──────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    # Browser origins allowed to call the API (JSON list in the environment)
    cors_origins: list[str] = ["http://localhost:3000"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()
