# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — FastAPI Dependencies
Process-wide confirmed-store memory, created once in the lifespan
startup hook of main.py and injected into routes via Depends().
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from storesense.config import get_settings
from storesense.core.confirmed_memory import (
    ConfirmedStoreMemory,
    InMemoryConfirmedStoreMemory,
    RedisConfirmedStoreMemory,
)
from storesense.utils.logger import get_logger

log = get_logger(__name__)

# ─── ConfirmedStoreMemory Singleton ──────────────────────────────────────────

_confirmed_memory: ConfirmedStoreMemory | None = None


def init_confirmed_memory() -> None:
    """Select the backend from CONFIRMED_MEMORY_BACKEND."""
    global _confirmed_memory
    settings = get_settings()

    if settings.confirmed_memory_backend == "redis":
        log.info("init_confirmed_memory", backend="redis", url=settings.redis_url)
        _confirmed_memory = RedisConfirmedStoreMemory(
            redis_url=settings.redis_url,
            key=settings.confirmed_memory_key,
        )
    else:
        log.info("init_confirmed_memory", backend="memory")
        _confirmed_memory = InMemoryConfirmedStoreMemory()


def get_confirmed_memory() -> ConfirmedStoreMemory:
    if _confirmed_memory is None:
        raise RuntimeError(
            "ConfirmedStoreMemory has not been initialised. "
            "Ensure init_confirmed_memory() is called during app lifespan startup."
        )
    return _confirmed_memory


ConfirmedMemoryDep = Annotated[ConfirmedStoreMemory, Depends(get_confirmed_memory)]
