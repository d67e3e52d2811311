# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Sensor Reading Models
What the position and radio providers hand to the orchestrator.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storesense.models.geo import GeoPoint
from storesense.models.store import NetworkSignature


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PositionFix(BaseModel):
    model_config = ConfigDict(frozen=True)

    point: GeoPoint
    horizontal_accuracy_meters: Optional[float] = Field(None, ge=0.0)
    observed_at: datetime = Field(default_factory=_utcnow)


class RadioObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    signature: NetworkSignature
    signal_strength_dbm: float = Field(..., description="RSSI, e.g. -65.0")
    observed_at: datetime = Field(default_factory=_utcnow)


class RadioSnapshot(BaseModel):
    """
    Visible networks at one moment. Empty and single-entry snapshots are
    both valid: some platforms only report the associated network.
    """
    model_config = ConfigDict(frozen=True)

    observations: tuple[RadioObservation, ...] = Field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.observations

    def signatures(self) -> list[NetworkSignature]:
        """Usable signatures in observation order."""
        return [o.signature for o in self.observations if o.signature.is_usable]
