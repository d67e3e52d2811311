# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Store Models
Read-only snapshots of directory records. The engine never mutates a
Store; frozen models also make them usable as mapping keys.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storesense.models.geo import GeoPoint, Geofence


class NetworkSignature(BaseModel):
    """
    A known or observed wireless network.
    BSSID is the hardware address (strong evidence), SSID the network
    name (weak evidence, names are reused across locations).
    """
    model_config = ConfigDict(frozen=True)

    ssid: Optional[str] = None
    bssid: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return bool(self.ssid) or bool(self.bssid)

    @property
    def normalised_bssid(self) -> Optional[str]:
        return self.bssid.strip().lower() if self.bssid else None


class Store(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    location: GeoPoint
    geofence: Optional[Geofence] = None
    signatures: tuple[NetworkSignature, ...] = Field(default_factory=tuple)
    # Domain flag carried through untouched
    authorized: bool = False
    chain_id: Optional[str] = None
