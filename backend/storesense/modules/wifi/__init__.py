# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — WiFi Signature Matcher Module
Public API for radio-snapshot matching.
"""

from storesense.modules.wifi.signal_bands import (
    BSSID_BONUS,
    match_confidence,
    signal_confidence,
)
from storesense.modules.wifi.signature_matcher import (
    build_signature_table,
    ensure_usable,
    filter_by_signal_strength,
    match,
    strongest_observation,
)

__all__ = [
    # Bands
    "BSSID_BONUS",
    "signal_confidence",
    "match_confidence",
    # Matcher
    "match",
    "ensure_usable",
    "build_signature_table",
    "filter_by_signal_strength",
    "strongest_observation",
]
