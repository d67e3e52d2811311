# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Geofence Validation and Cache

Validation mirrors what the directory is supposed to guarantee but
cannot be trusted to: a usable polygon has >= 3 distinct vertices, no
consecutive duplicates and in-range coordinates; a usable circle has a
positive radius. Anything else is a DegenerateGeofence, logged once and
treated as "no geofence" so that store falls back to distance matching.

The cache holds the validated geometry plus derived data (bounding box,
centre) per store id. It is tied to a directory snapshot version: the
first lookup under a new version drops every entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from storesense.api.middleware.error_handler import DegenerateGeofence
from storesense.models.geo import CircleGeofence, GeoPoint, Geofence, PolygonGeofence
from storesense.models.store import Store
from storesense.modules.geospatial.containment import bounding_box
from storesense.modules.geospatial.distance import geofence_center, vertex_array
from storesense.utils.logger import get_logger

log = get_logger(__name__)


def validate_geofence(geofence: Geofence) -> Optional[str]:
    """
    Return a human-readable reason if the geofence is degenerate,
    or None if it can support containment tests.
    """
    if isinstance(geofence, CircleGeofence):
        if not geofence.radius_meters > 0:
            return f"circle radius must be positive, got {geofence.radius_meters}"
        return None

    verts = vertex_array(geofence)
    n_distinct = len(np.unique(verts, axis=0)) if len(verts) else 0
    if n_distinct < 3:
        return f"polygon needs at least 3 distinct vertices, got {n_distinct}"

    consecutive_dupes = np.all(verts == np.roll(verts, -1, axis=0), axis=1)
    if consecutive_dupes.any():
        return "polygon has consecutive duplicate vertices"

    # GeoPoint enforces ranges on construction; model_construct can bypass it
    if (np.abs(verts[:, 0]) > 90).any() or (np.abs(verts[:, 1]) > 180).any():
        return "polygon has out-of-range coordinates"

    return None


def validate_geofences(stores: list[Store]) -> list[tuple[str, str]]:
    """(store_id, reason) for every store carrying a degenerate geofence."""
    errors: list[tuple[str, str]] = []
    for store in stores:
        if store.geofence is None:
            continue
        reason = validate_geofence(store.geofence)
        if reason is not None:
            errors.append((store.id, reason))
    return errors


@dataclass(frozen=True)
class PreparedGeofence:
    """A validated geofence with derived data computed once."""
    geofence: Geofence
    center: GeoPoint
    # (min_lat, max_lat, min_lng, max_lng); polygons only
    bbox: Optional[tuple[float, float, float, float]] = None

    @property
    def is_polygon(self) -> bool:
        return isinstance(self.geofence, PolygonGeofence)


def prepare_geofence(geofence: Geofence) -> PreparedGeofence:
    """Raise DegenerateGeofence, or return the prepared geometry."""
    reason = validate_geofence(geofence)
    if reason is not None:
        raise DegenerateGeofence(reason)

    if isinstance(geofence, PolygonGeofence):
        return PreparedGeofence(
            geofence=geofence,
            center=geofence_center(geofence),
            bbox=bounding_box(geofence),
        )
    return PreparedGeofence(geofence=geofence, center=geofence.center)


class GeofenceCache:
    """
    Per-store prepared geofences, invalidated on directory version change.
    Not thread-safe; one cache belongs to one orchestrator.
    """

    def __init__(self) -> None:
        self._version: Optional[object] = None
        self._entries: dict[str, Optional[PreparedGeofence]] = {}
        self._degenerate: set[str] = set()

    @property
    def version(self) -> Optional[object]:
        return self._version

    def _sync_version(self, version: object) -> None:
        if version != self._version:
            if self._entries:
                log.info(
                    "geofence_cache_invalidated",
                    old_version=self._version,
                    new_version=version,
                    dropped=len(self._entries),
                )
            self._entries.clear()
            self._degenerate.clear()
            self._version = version

    def get(self, store: Store, version: object) -> Optional[PreparedGeofence]:
        """
        Prepared geofence for store under the given directory version.
        None means "match this store by distance only".
        """
        self._sync_version(version)

        if store.id in self._entries:
            return self._entries[store.id]

        prepared: Optional[PreparedGeofence] = None
        if store.geofence is not None:
            try:
                prepared = prepare_geofence(store.geofence)
            except DegenerateGeofence as exc:
                log.warning(
                    "degenerate_geofence",
                    store_id=store.id,
                    reason=str(exc),
                )
                self._degenerate.add(store.id)

        self._entries[store.id] = prepared
        return prepared

    def clear(self) -> None:
        self._entries.clear()
        self._degenerate.clear()
        self._version = None

    def stats(self) -> dict:
        """Coverage counts over the entries cached for the current version."""
        prepared = [p for p in self._entries.values() if p is not None]
        polygons = sum(1 for p in prepared if p.is_polygon)
        total = len(self._entries)
        return {
            "total": total,
            "with_geofence": len(prepared),
            "polygons": polygons,
            "circles": len(prepared) - polygons,
            "degenerate": len(self._degenerate),
            "coverage": (len(prepared) / total * 100.0) if total else 0.0,
        }
