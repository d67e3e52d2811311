# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Signal Strength Confidence Bands

RSSI → base confidence for a network match:
  stronger than -60 dBm    → 95
  -60 down to above -70    → 85
  -70 down to above -80    → 70
  -80 and weaker           → 50

A BSSID match adds BSSID_BONUS on top (capped at 100); an SSID-only
match keeps the base value.
"""

from __future__ import annotations

# (exclusive lower bound in dBm, confidence) — first band the signal exceeds wins
SIGNAL_BANDS: tuple[tuple[float, int], ...] = (
    (-60.0, 95),
    (-70.0, 85),
    (-80.0, 70),
)
WEAK_SIGNAL_CONFIDENCE = 50

BSSID_BONUS = 10


def signal_confidence(signal_strength_dbm: float) -> int:
    """Base confidence for a match observed at the given strength."""
    for lower, confidence in SIGNAL_BANDS:
        if signal_strength_dbm > lower:
            return confidence
    return WEAK_SIGNAL_CONFIDENCE


def match_confidence(signal_strength_dbm: float, bssid_match: bool) -> int:
    base = signal_confidence(signal_strength_dbm)
    if bssid_match:
        return min(100, base + BSSID_BONUS)
    return base
