# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — External Collaborator Interfaces
Abstract position provider, radio provider and store directory the
orchestrator depends on, plus static/in-memory implementations used by
the HTTP surface and the test suite.

Platform adapters (OS location services, WiFi managers, the directory
API client) live outside this repo and subclass these.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from storesense.api.middleware.error_handler import PositionUnavailable, RadioUnavailable
from storesense.models.geo import GeoPoint
from storesense.models.signals import PositionFix, RadioSnapshot
from storesense.models.store import NetworkSignature, Store
from storesense.modules.geospatial.distance import haversine_distance
from storesense.utils.logger import get_logger

log = get_logger(__name__)


# ─── Abstract Interfaces ─────────────────────────────────────────────────────

class PositionProvider(ABC):
    @abstractmethod
    async def get_current_fix(self, timeout_seconds: float) -> PositionFix:
        """Return a fix, or raise PositionUnavailable / asyncio.TimeoutError."""


class RadioProvider(ABC):
    @abstractmethod
    async def get_current_snapshot(self) -> RadioSnapshot:
        """
        Return visible networks. Platforms limited to the associated
        network return a single-entry snapshot. Raise RadioUnavailable
        when scanning is unsupported or not permitted.
        """


class StoreDirectory(ABC):
    """Read-only view over the store directory service."""

    @property
    @abstractmethod
    def version(self) -> object:
        """Snapshot version; changes whenever store records change."""

    @abstractmethod
    async def query_nearby(self, point: GeoPoint, radius_meters: float) -> list[Store]:
        """Stores whose location lies within radius_meters of point."""

    @abstractmethod
    async def query_by_signatures(self, signatures: Iterable[NetworkSignature]) -> list[Store]:
        """Stores publishing any of the given network signatures."""


# ─── Static Implementations ──────────────────────────────────────────────────

class StaticPositionProvider(PositionProvider):
    """
    Returns a fixed fix. fix=None behaves like denied permission.
    delay_seconds simulates a slow receiver.
    """

    def __init__(self, fix: Optional[PositionFix], delay_seconds: float = 0.0) -> None:
        self._fix = fix
        self._delay = delay_seconds
        self.calls = 0

    async def get_current_fix(self, timeout_seconds: float) -> PositionFix:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fix is None:
            raise PositionUnavailable("no position fix available")
        return self._fix


class StaticRadioProvider(RadioProvider):
    """
    Returns a fixed snapshot. snapshot=None behaves like a platform
    without scan capability.
    """

    def __init__(self, snapshot: Optional[RadioSnapshot], delay_seconds: float = 0.0) -> None:
        self._snapshot = snapshot
        self._delay = delay_seconds
        self.calls = 0

    async def get_current_snapshot(self) -> RadioSnapshot:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._snapshot is None:
            raise RadioUnavailable("radio scanning not available")
        return self._snapshot


class InMemoryStoreDirectory(StoreDirectory):
    """
    Directory backed by a list of stores. replace_stores() bumps the
    version so downstream geometry caches drop stale entries.
    """

    def __init__(self, stores: Iterable[Store] = ()) -> None:
        self._stores: list[Store] = list(stores)
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def replace_stores(self, stores: Iterable[Store]) -> None:
        self._stores = list(stores)
        self._version += 1
        log.info("directory_updated", version=self._version, stores=len(self._stores))

    async def query_nearby(self, point: GeoPoint, radius_meters: float) -> list[Store]:
        found = [
            s for s in self._stores
            if haversine_distance(point, s.location) <= radius_meters
        ]
        return sorted(found, key=lambda s: s.id)

    async def query_by_signatures(self, signatures: Iterable[NetworkSignature]) -> list[Store]:
        wanted = list(signatures)
        bssids = {s.normalised_bssid for s in wanted if s.normalised_bssid}
        ssids = {s.ssid for s in wanted if s.ssid}

        found = [
            store for store in self._stores
            if any(
                (sig.normalised_bssid and sig.normalised_bssid in bssids)
                or (sig.ssid and sig.ssid in ssids)
                for sig in store.signatures
            )
        ]
        return sorted(found, key=lambda s: s.id)
