# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Polygon Edge Distance
Minimum point-to-segment distance over every edge of a polygon ring.

Used for intra-geofence refinement only (how much clearance a fix has
from the fence boundary). Containment never depends on it.
"""

from __future__ import annotations

import math

import numpy as np

from storesense.models.geo import GeoPoint, PolygonGeofence
from storesense.modules.geospatial.distance import project_local, vertex_array


def segment_distances(
    px: float,
    py: float,
    ax: np.ndarray,
    ay: np.ndarray,
    bx: np.ndarray,
    by: np.ndarray,
) -> np.ndarray:
    """
    Planar distance from (px, py) to each segment A→B.
    Zero-length segments collapse to point distance.
    Returns (N,) float64 array.
    """
    dx = bx - ax
    dy = by - ay
    len_sq = dx * dx + dy * dy

    with np.errstate(divide="ignore", invalid="ignore"):
        t = ((px - ax) * dx + (py - ay) * dy) / len_sq
    t = np.where(len_sq > 0, np.clip(t, 0.0, 1.0), 0.0)

    cx = ax + t * dx
    cy = ay + t * dy
    return np.hypot(px - cx, py - cy)


def distance_to_polygon_edge(point: GeoPoint, polygon: PolygonGeofence) -> float:
    """
    Minimum distance in metres from point to any polygon edge.
    Returns math.inf when the ring has fewer than 2 vertices.
    """
    verts = vertex_array(polygon)
    if len(verts) < 2:
        return math.inf

    plane = project_local(verts, origin=point)   # point sits at (0, 0)
    ax, ay = plane[:, 0], plane[:, 1]
    bx, by = np.roll(ax, -1), np.roll(ay, -1)

    return float(segment_distances(0.0, 0.0, ax, ay, bx, by).min())
