# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Abstract ConfirmedStoreMemory
The set of store ids a user has explicitly accepted before.
The engine only ever calls contains(); add() and remove() belong to the
external accept/forget actions (the HTTP routes in this repo).

InMemoryConfirmedStoreMemory  — tests / single-process deployments
RedisConfirmedStoreMemory     — durable, shared across workers
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable

from storesense.utils.logger import get_logger

log = get_logger(__name__)


# ─── Abstract Interface ──────────────────────────────────────────────────────

class ConfirmedStoreMemory(ABC):
    """
    Abstract base class for confirmed-store backends.
    All methods are synchronous; lookups are a single set membership test.
    """

    @abstractmethod
    def contains(self, store_id: str) -> bool:
        """True if the user has previously confirmed this store."""

    @abstractmethod
    def add(self, store_id: str) -> None:
        """Record a confirmation. Idempotent."""

    @abstractmethod
    def remove(self, store_id: str) -> None:
        """Forget a confirmation. Missing ids are ignored."""

    @abstractmethod
    def store_ids(self) -> set[str]:
        """Snapshot of every confirmed id."""


# ─── In-Memory Implementation ────────────────────────────────────────────────

class InMemoryConfirmedStoreMemory(ConfirmedStoreMemory):
    """
    Thread-safe in-memory set guarded by an RLock.
    All data is lost on process restart.
    """

    def __init__(self, store_ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(store_ids)
        self._lock = threading.RLock()

    def contains(self, store_id: str) -> bool:
        with self._lock:
            return store_id in self._ids

    def add(self, store_id: str) -> None:
        with self._lock:
            self._ids.add(store_id)
        log.info("store_confirmed", store_id=store_id, backend="memory")

    def remove(self, store_id: str) -> None:
        with self._lock:
            self._ids.discard(store_id)
        log.info("store_confirmation_removed", store_id=store_id, backend="memory")

    def store_ids(self) -> set[str]:
        with self._lock:
            return set(self._ids)

    def count(self) -> int:
        """Number of confirmed stores (useful for health checks)."""
        with self._lock:
            return len(self._ids)


# ─── Redis Implementation ────────────────────────────────────────────────────

class RedisConfirmedStoreMemory(ConfirmedStoreMemory):
    """
    Redis-backed memory: one SET per key.
    Requires redis-py and a running Redis instance.
    """

    def __init__(self, redis_url: str, key: str = "storesense:confirmed") -> None:
        try:
            import redis as redis_lib
        except ImportError as e:
            raise ImportError(
                "redis package required for RedisConfirmedStoreMemory. "
                "Install with: pip install redis"
            ) from e

        self._client = redis_lib.from_url(redis_url, decode_responses=True)
        self._key = key

        # Verify connection on init
        self._client.ping()
        log.info("redis_confirmed_memory_connected", url=redis_url, key=key)

    def contains(self, store_id: str) -> bool:
        return bool(self._client.sismember(self._key, store_id))

    def add(self, store_id: str) -> None:
        self._client.sadd(self._key, store_id)
        log.info("store_confirmed", store_id=store_id, backend="redis")

    def remove(self, store_id: str) -> None:
        self._client.srem(self._key, store_id)
        log.info("store_confirmation_removed", store_id=store_id, backend="redis")

    def store_ids(self) -> set[str]:
        return set(self._client.smembers(self._key))
