# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Confidence Fusion Module
Public API for combining GPS and WiFi candidates.
"""

from storesense.modules.fusion.fusion_engine import (
    AGREEMENT_BONUS,
    GEOFENCE_OVERRIDE_CONFIDENCE,
    FusionCase,
    best_wifi_candidate,
    classify,
    fuse,
)

__all__ = [
    "AGREEMENT_BONUS",
    "GEOFENCE_OVERRIDE_CONFIDENCE",
    "FusionCase",
    "best_wifi_candidate",
    "classify",
    "fuse",
]
