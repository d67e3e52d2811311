# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — GPS Candidate Locator

Turns a position fix plus the nearby store set into at most one GPS
candidate, in two passes:

  Pass 1 (GEOFENCE): every store with a valid geofence is tested for
  containment (polygons bounding-box prefiltered). Among containing
  stores, the one whose geofence centre is nearest the fix wins.
  Confidence comes from the distance to that centre:
      <= 25 m → 100    <= 100 m → 98    beyond → 95

  Pass 2 (DISTANCE): when nothing contains the fix, the store nearest
  to the fix by its location point wins, with the distance bands:
      <= 10 m → 100   <= 25 m → 95   <= 50 m → 85
      <= 100 m → 70   <= 200 m → 50  beyond → 30

Ties are broken deterministically (pass 1: larger polygon edge
clearance, then store id; pass 2: store id).
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from storesense.models.detection import Candidate, DetectionMethod
from storesense.models.signals import PositionFix
from storesense.models.store import Store
from storesense.modules.geospatial.containment import (
    point_in_bounding_box,
    point_in_circle,
    point_in_polygon,
)
from storesense.modules.geospatial.distance import haversine_distance
from storesense.modules.geospatial.edge_distance import distance_to_polygon_edge
from storesense.modules.geospatial.geofence_cache import GeofenceCache, PreparedGeofence
from storesense.utils.logger import get_logger

log = get_logger(__name__)

# (upper bound in metres, confidence) — first matching band wins
DISTANCE_BANDS: tuple[tuple[float, int], ...] = (
    (10.0, 100),
    (25.0, 95),
    (50.0, 85),
    (100.0, 70),
    (200.0, 50),
)
DISTANCE_FLOOR_CONFIDENCE = 30

GEOFENCE_BANDS: tuple[tuple[float, int], ...] = (
    (25.0, 100),
    (100.0, 98),
)
GEOFENCE_FLOOR_CONFIDENCE = 95


def _band_lookup(
    distance_m: float,
    bands: tuple[tuple[float, int], ...],
    floor: int,
) -> int:
    for upper, confidence in bands:
        if distance_m <= upper:
            return confidence
    return floor


def distance_confidence(distance_m: float) -> int:
    """Confidence for a distance-only match."""
    return _band_lookup(distance_m, DISTANCE_BANDS, DISTANCE_FLOOR_CONFIDENCE)


def geofence_confidence(distance_to_center_m: float) -> int:
    """Confidence for a fix inside a geofence, by distance to its centre."""
    return _band_lookup(distance_to_center_m, GEOFENCE_BANDS, GEOFENCE_FLOOR_CONFIDENCE)


def _contains(prepared: PreparedGeofence, fix: PositionFix) -> bool:
    if prepared.is_polygon:
        if not point_in_bounding_box(fix.point, prepared.bbox):
            return False
        return point_in_polygon(fix.point, prepared.geofence)
    return point_in_circle(fix.point, prepared.geofence)


def _geofence_pass(
    fix: PositionFix,
    stores: list[Store],
    cache: GeofenceCache,
    version: object,
) -> Optional[Candidate]:
    contained: list[tuple[float, float, str, Store, Optional[float]]] = []

    for store in stores:
        prepared = cache.get(store, version)
        if prepared is None or not _contains(prepared, fix):
            continue

        center_distance = haversine_distance(fix.point, prepared.center)
        edge_distance: Optional[float] = None
        if prepared.is_polygon:
            edge_distance = distance_to_polygon_edge(fix.point, prepared.geofence)

        # Sort key: nearest centre, then most clearance, then id
        clearance = edge_distance if edge_distance is not None else math.inf
        contained.append((center_distance, -clearance, store.id, store, edge_distance))

    if not contained:
        return None

    contained.sort(key=lambda c: (c[0], c[1], c[2]))
    center_distance, _, _, store, edge_distance = contained[0]

    log.debug(
        "geofence_match",
        store_id=store.id,
        containing=len(contained),
        center_distance_m=center_distance,
    )

    return Candidate(
        store=store,
        confidence=geofence_confidence(center_distance),
        method=DetectionMethod.GEOFENCE,
        distance_meters=center_distance,
        inside_geofence=True,
        edge_distance_meters=edge_distance,
    )


def _distance_pass(fix: PositionFix, stores: list[Store]) -> Optional[Candidate]:
    if not stores:
        return None

    nearest = min(
        stores,
        key=lambda s: (haversine_distance(fix.point, s.location), s.id),
    )
    distance = haversine_distance(fix.point, nearest.location)

    return Candidate(
        store=nearest,
        confidence=distance_confidence(distance),
        method=DetectionMethod.DISTANCE,
        distance_meters=distance,
        inside_geofence=False,
    )


def locate_gps_candidate(
    fix: PositionFix,
    stores: Iterable[Store],
    cache: Optional[GeofenceCache] = None,
    version: object = None,
) -> Optional[Candidate]:
    """
    Best GPS-derived candidate for a fix, or None if there are no stores.

    Args:
        fix:     Current position fix
        stores:  Candidate stores from the directory query
        cache:   Geofence cache; a throwaway one is used if omitted
        version: Directory snapshot version the stores belong to
    """
    store_list = list(stores)
    if cache is None:
        cache = GeofenceCache()

    candidate = _geofence_pass(fix, store_list, cache, version)
    if candidate is None:
        candidate = _distance_pass(fix, store_list)

    if candidate is not None:
        log.info(
            "gps_candidate_selected",
            store_id=candidate.store.id,
            method=candidate.method.value,
            confidence=candidate.confidence,
            distance_m=candidate.distance_meters,
            accuracy_m=fix.horizontal_accuracy_meters,
        )
    return candidate
