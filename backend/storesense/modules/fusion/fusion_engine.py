# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Confidence Fusion Engine

Combines the GPS candidate and the best WiFi candidate into a single
decision. The rules are a closed decision table: classify() tags the
input pair with exactly one FusionCase, and each case has one resolver.

  NONE               neither signal            → None
  GPS_ONLY           GPS only                  → GPS candidate as-is
  WIFI_ONLY          WiFi only                 → WiFi candidate as-is
  AGREEMENT          same store                → min(100, max(gps, wifi) + 10),
                                                 method 'fused'
  GEOFENCE_OVERRIDE  different stores, GPS is a
                     geofence hit at >= 95     → GPS candidate
  DISAGREEMENT       different stores otherwise → strictly higher confidence
                                                 wins, ties go to GPS

The override encodes the product decision that an in-fence fix is
nearly unimpeachable, while radio matches are advisory unless
corroborated. GPS wins ties because geofences are curated data and
network names are not unique. For the same reason, when several stores
tie for the best WiFi score the GPS store is picked among them before
falling back to store id.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence

from storesense.models.detection import Candidate, DetectionMethod
from storesense.utils.logger import get_logger

log = get_logger(__name__)

AGREEMENT_BONUS = 10
GEOFENCE_OVERRIDE_CONFIDENCE = 95


class FusionCase(str, Enum):
    NONE = "none"
    GPS_ONLY = "gps_only"
    WIFI_ONLY = "wifi_only"
    AGREEMENT = "agreement"
    GEOFENCE_OVERRIDE = "geofence_override"
    DISAGREEMENT = "disagreement"


def best_wifi_candidate(
    wifi_candidates: Sequence[Candidate],
    gps_candidate: Optional[Candidate] = None,
) -> Optional[Candidate]:
    """
    Highest confidence WiFi candidate.

    Stores sharing a network name score identically, so among the tied
    top entries the one GPS also points at is preferred. Any remaining
    tie goes to the smallest store id.
    """
    if not wifi_candidates:
        return None
    top = max(c.confidence for c in wifi_candidates)
    tied = [c for c in wifi_candidates if c.confidence == top]
    if gps_candidate is not None:
        for candidate in tied:
            if candidate.store.id == gps_candidate.store.id:
                return candidate
    return min(tied, key=lambda c: c.store.id)


def classify(gps: Optional[Candidate], wifi: Optional[Candidate]) -> FusionCase:
    if gps is None and wifi is None:
        return FusionCase.NONE
    if wifi is None:
        return FusionCase.GPS_ONLY
    if gps is None:
        return FusionCase.WIFI_ONLY
    if gps.store.id == wifi.store.id:
        return FusionCase.AGREEMENT
    if (
        gps.method == DetectionMethod.GEOFENCE
        and gps.confidence >= GEOFENCE_OVERRIDE_CONFIDENCE
    ):
        return FusionCase.GEOFENCE_OVERRIDE
    return FusionCase.DISAGREEMENT


# ─── Resolvers ───────────────────────────────────────────────────────────────

def _resolve_none(gps: Optional[Candidate], wifi: Optional[Candidate]) -> Optional[Candidate]:
    return None


def _resolve_gps_only(gps: Candidate, wifi: Optional[Candidate]) -> Candidate:
    return gps


def _resolve_wifi_only(gps: Optional[Candidate], wifi: Candidate) -> Candidate:
    if wifi.method != DetectionMethod.WIFI:
        return wifi.model_copy(update={"method": DetectionMethod.WIFI})
    return wifi


def _resolve_agreement(gps: Candidate, wifi: Candidate) -> Candidate:
    fused = min(100, max(gps.confidence, wifi.confidence) + AGREEMENT_BONUS)
    return gps.model_copy(
        update={
            "confidence": fused,
            "method": DetectionMethod.FUSED,
            "signal_strength_dbm": wifi.signal_strength_dbm,
        }
    )


def _resolve_geofence_override(gps: Candidate, wifi: Candidate) -> Candidate:
    return gps


def _resolve_disagreement(gps: Candidate, wifi: Candidate) -> Candidate:
    return wifi if wifi.confidence > gps.confidence else gps


_RESOLVERS: dict[FusionCase, Callable[..., Optional[Candidate]]] = {
    FusionCase.NONE: _resolve_none,
    FusionCase.GPS_ONLY: _resolve_gps_only,
    FusionCase.WIFI_ONLY: _resolve_wifi_only,
    FusionCase.AGREEMENT: _resolve_agreement,
    FusionCase.GEOFENCE_OVERRIDE: _resolve_geofence_override,
    FusionCase.DISAGREEMENT: _resolve_disagreement,
}


def fuse(
    gps_candidate: Optional[Candidate],
    wifi_candidates: Sequence[Candidate],
) -> Optional[Candidate]:
    """
    Apply the fusion decision table.

    Args:
        gps_candidate:   Candidate from the geospatial matcher, or None
        wifi_candidates: All WiFi candidates (possibly several stores)

    Returns:
        The winning Candidate, or None when neither signal produced one.
    """
    wifi_best = best_wifi_candidate(wifi_candidates, gps_candidate)
    case = classify(gps_candidate, wifi_best)
    result = _RESOLVERS[case](gps_candidate, wifi_best)

    log.info(
        "fusion_complete",
        case=case.value,
        gps_store=gps_candidate.store.id if gps_candidate else None,
        gps_confidence=gps_candidate.confidence if gps_candidate else None,
        wifi_store=wifi_best.store.id if wifi_best else None,
        wifi_confidence=wifi_best.confidence if wifi_best else None,
        wifi_candidates=len(wifi_candidates),
        winner=result.store.id if result else None,
        confidence=result.confidence if result else 0,
    )
    return result
