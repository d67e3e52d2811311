# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Detection Models
Intermediate candidates produced by the matchers, the confirmation
lifecycle states, and the DetectionResult handed back to callers.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storesense.models.signals import PositionFix, RadioSnapshot
from storesense.models.store import Store


class DetectionMethod(str, Enum):
    GEOFENCE = "geofence"
    DISTANCE = "distance"
    WIFI = "wifi"
    FUSED = "fused"
    # User picked the store by hand in the confirmation flow
    MANUAL = "manual"
    NONE = "none"


class DetectionState(str, Enum):
    """Confirmation lifecycle states."""
    IDLE = "idle"
    DETECTING = "detecting"
    RESOLVED = "resolved"
    SILENT_ACCEPT = "silent_accept"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


class Candidate(BaseModel):
    """One store proposed by a single matcher, or by fusion."""
    model_config = ConfigDict(frozen=True)

    store: Store
    confidence: int = Field(..., ge=0, le=100)
    method: DetectionMethod
    distance_meters: Optional[float] = Field(None, ge=0.0)
    inside_geofence: bool = False

    # ── Supplemental evidence ──
    # Clearance from the polygon boundary (polygon geofences only)
    edge_distance_meters: Optional[float] = Field(None, ge=0.0)
    # Strength of the network that produced a WiFi match
    signal_strength_dbm: Optional[float] = None

    @model_validator(mode="after")
    def _method_is_concrete(self) -> "Candidate":
        if self.method == DetectionMethod.NONE:
            raise ValueError("a Candidate always names a store; method 'none' is reserved")
        return self


class DetectionResult(BaseModel):
    """
    Engine output. store=None always comes with confidence 0 and
    method 'none', which callers read as "offer manual selection".
    """
    model_config = ConfigDict(frozen=True)

    store: Optional[Store] = None
    confidence: int = Field(0, ge=0, le=100)
    method: DetectionMethod = DetectionMethod.NONE
    inside_geofence: bool = False
    distance_meters: Optional[float] = Field(None, ge=0.0)
    requires_confirmation: bool = False
    state: DetectionState = DetectionState.IDLE
    # Other nearby stores, for a "change store" choice in the UI
    alternatives: tuple[Store, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _empty_result_is_consistent(self) -> "DetectionResult":
        if self.store is None:
            if self.confidence != 0 or self.method != DetectionMethod.NONE:
                raise ValueError(
                    "DetectionResult without a store must have confidence 0 "
                    "and method 'none'"
                )
            if self.requires_confirmation:
                raise ValueError("DetectionResult without a store cannot require confirmation")
        elif self.method == DetectionMethod.NONE:
            raise ValueError("DetectionResult with a store needs a concrete method")
        return self

    @classmethod
    def empty(
        cls,
        alternatives: tuple[Store, ...] = (),
        state: DetectionState = DetectionState.IDLE,
    ) -> "DetectionResult":
        return cls(alternatives=tuple(alternatives), state=state)

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        *,
        state: DetectionState,
        alternatives: tuple[Store, ...] = (),
    ) -> "DetectionResult":
        return cls(
            store=candidate.store,
            confidence=candidate.confidence,
            method=candidate.method,
            inside_geofence=candidate.inside_geofence,
            distance_meters=candidate.distance_meters,
            requires_confirmation=state == DetectionState.PENDING_CONFIRMATION,
            state=state,
            alternatives=tuple(alternatives),
        )


# ─── HTTP payloads ───────────────────────────────────────────────────────────

class DetectRequest(BaseModel):
    """POST /detect body: the sensor readings plus the stores to match against."""
    fix: Optional[PositionFix] = None
    snapshot: Optional[RadioSnapshot] = None
    stores: list[Store] = Field(default_factory=list)


class ConfirmationStatus(BaseModel):
    store_id: str
    confirmed: bool
