# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Geospatial Matcher Module
Public API for distance, containment and GPS candidate selection.
All functions are pure apart from log output.
"""

from storesense.modules.geospatial.containment import (
    bounding_box,
    bounding_box_prefilter,
    point_in_circle,
    point_in_geofence,
    point_in_polygon,
)
from storesense.modules.geospatial.distance import (
    EARTH_RADIUS_M,
    geofence_center,
    haversine_distance,
    polygon_centroid,
)
from storesense.modules.geospatial.edge_distance import distance_to_polygon_edge
from storesense.modules.geospatial.geofence_cache import (
    GeofenceCache,
    PreparedGeofence,
    prepare_geofence,
    validate_geofence,
    validate_geofences,
)
from storesense.modules.geospatial.store_locator import (
    distance_confidence,
    geofence_confidence,
    locate_gps_candidate,
)

__all__ = [
    # Distance
    "EARTH_RADIUS_M",
    "haversine_distance",
    "geofence_center",
    "polygon_centroid",
    "distance_to_polygon_edge",
    # Containment
    "point_in_circle",
    "point_in_polygon",
    "point_in_geofence",
    "bounding_box",
    "bounding_box_prefilter",
    # Validation + cache
    "validate_geofence",
    "validate_geofences",
    "prepare_geofence",
    "PreparedGeofence",
    "GeofenceCache",
    # GPS candidate
    "distance_confidence",
    "geofence_confidence",
    "locate_gps_candidate",
]
