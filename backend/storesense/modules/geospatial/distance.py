# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Distance Helpers

Haversine great-circle distance on a spherical Earth (R = 6,371,000 m).
Error against the WGS-84 ellipsoid stays within ~0.5% over a few
kilometres, which is well inside retail-scale geofence tolerances.

Also provides a local equirectangular projection used for edge-distance
work: around a reference latitude, degrees are scaled to metres so that
short segments can be treated as planar.
"""

from __future__ import annotations

import math

import numpy as np

from storesense.models.geo import CircleGeofence, GeoPoint, Geofence, PolygonGeofence

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points, in metres."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def project_local(
    points: np.ndarray,   # (N, 2) [lat, lng] degrees
    origin: GeoPoint,
) -> np.ndarray:
    """
    Project [lat, lng] degree pairs into a metre plane centred on origin.
    Returns (N, 2) float64 array of [x_east, y_north].
    """
    lat0 = math.radians(origin.lat)
    m_per_deg = math.pi * EARTH_RADIUS_M / 180.0
    x = (points[:, 1] - origin.lng) * m_per_deg * math.cos(lat0)
    y = (points[:, 0] - origin.lat) * m_per_deg
    return np.stack([x, y], axis=1)


def polygon_centroid(polygon: PolygonGeofence) -> GeoPoint:
    """Vertex-average centroid. Raises ValueError on an empty polygon."""
    if not polygon.vertices:
        raise ValueError("Cannot calculate centroid of empty polygon")
    verts = _open_ring(polygon)
    return GeoPoint(
        lat=sum(v.lat for v in verts) / len(verts),
        lng=sum(v.lng for v in verts) / len(verts),
    )


def geofence_center(geofence: Geofence) -> GeoPoint:
    """Circle centre, or polygon vertex centroid."""
    if isinstance(geofence, CircleGeofence):
        return geofence.center
    return polygon_centroid(geofence)


def _open_ring(polygon: PolygonGeofence) -> tuple[GeoPoint, ...]:
    """Drop a trailing vertex that repeats the first."""
    verts = polygon.vertices
    if len(verts) > 1 and verts[0] == verts[-1]:
        return verts[:-1]
    return verts


def vertex_array(polygon: PolygonGeofence) -> np.ndarray:
    """Open ring as an (N, 2) float64 array of [lat, lng]."""
    verts = _open_ring(polygon)
    if not verts:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([[v.lat, v.lng] for v in verts], dtype=np.float64)
