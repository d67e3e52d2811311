# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Geometry Models
Immutable WGS-84 points and the two geofence shapes a store can own.
Geofence shapes accept degenerate geometry on construction; validation
happens in the geofence cache so one bad record cannot fail a cycle.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")


class CircleGeofence(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["circle"] = "circle"
    center: GeoPoint
    radius_meters: float = Field(..., description="Radius in metres (must be > 0 to be usable)")


class PolygonGeofence(BaseModel):
    """
    Ordered polygon ring. Winding order and starting vertex are free;
    a closing vertex equal to the first is tolerated.
    """
    model_config = ConfigDict(frozen=True)

    type: Literal["polygon"] = "polygon"
    vertices: tuple[GeoPoint, ...] = Field(default_factory=tuple)


Geofence = Annotated[
    Union[CircleGeofence, PolygonGeofence],
    Field(discriminator="type"),
]
