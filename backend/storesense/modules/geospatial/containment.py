# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Geofence Containment

Circle:  haversine distance to centre <= radius (boundary inclusive).

Polygon: ray casting (Jordan curve theorem). A horizontal ray is cast
from the point toward +inf longitude and edge crossings are counted;
an odd count means inside. Parity does not depend on where the vertex
list starts or on winding direction. Points lying on an edge are
reported inside, matching the inclusive circle boundary.

Bounding-box prefilter: O(n) axis-aligned rejection. A False result
guarantees point_in_polygon is False; True guarantees nothing.

Degenerate polygons (< 3 distinct vertices) never raise; containment
is simply False.
"""

from __future__ import annotations

import numpy as np

from storesense.models.geo import CircleGeofence, GeoPoint, Geofence, PolygonGeofence
from storesense.modules.geospatial.distance import haversine_distance, vertex_array
from storesense.modules.geospatial.edge_distance import segment_distances

# Degrees; ~0.1 micrometre on the ground
_ON_EDGE_TOLERANCE_DEG = 1e-12


def point_in_circle(point: GeoPoint, circle: CircleGeofence) -> bool:
    return haversine_distance(point, circle.center) <= circle.radius_meters


def bounding_box(polygon: PolygonGeofence) -> tuple[float, float, float, float] | None:
    """
    Axis-aligned box of a polygon ring.
    Returns (min_lat, max_lat, min_lng, max_lng), or None for an empty ring.
    """
    verts = vertex_array(polygon)
    if len(verts) == 0:
        return None
    lats, lngs = verts[:, 0], verts[:, 1]
    return float(lats.min()), float(lats.max()), float(lngs.min()), float(lngs.max())


def point_in_bounding_box(
    point: GeoPoint,
    box: tuple[float, float, float, float] | None,
) -> bool:
    if box is None:
        return False
    min_lat, max_lat, min_lng, max_lng = box
    return min_lat <= point.lat <= max_lat and min_lng <= point.lng <= max_lng


def bounding_box_prefilter(point: GeoPoint, polygon: PolygonGeofence) -> bool:
    """Cheap rejection before ray casting. Boundary inclusive."""
    return point_in_bounding_box(point, bounding_box(polygon))


def _on_boundary(x: float, y: float, xi: np.ndarray, yi: np.ndarray) -> bool:
    xj, yj = np.roll(xi, -1), np.roll(yi, -1)
    dists = segment_distances(x, y, xi, yi, xj, yj)
    return bool((dists <= _ON_EDGE_TOLERANCE_DEG).any())


def point_in_polygon(point: GeoPoint, polygon: PolygonGeofence) -> bool:
    verts = vertex_array(polygon)
    if len(verts) < 3 or len(np.unique(verts, axis=0)) < 3:
        return False

    # x = longitude, y = latitude
    x, y = point.lng, point.lat
    yi, xi = verts[:, 0], verts[:, 1]

    if _on_boundary(x, y, xi, yi):
        return True

    yj, xj = np.roll(yi, 1), np.roll(xi, 1)
    straddles = (yi > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
    crossings = straddles & (x < x_cross)

    return bool(np.count_nonzero(crossings) % 2 == 1)


def point_in_geofence(point: GeoPoint, geofence: Geofence) -> bool:
    """Dispatch on geofence type. Polygons are bounding-box prefiltered first."""
    if isinstance(geofence, CircleGeofence):
        return point_in_circle(point, geofence)
    if not bounding_box_prefilter(point, geofence):
        return False
    return point_in_polygon(point, geofence)
