# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 4 — Confidence fusion tests.
Hand-built candidates exercise every row of the decision table.
"""

import pytest

from storesense.models.detection import Candidate, DetectionMethod
from storesense.models.geo import GeoPoint
from storesense.models.store import Store


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _store(store_id: str) -> Store:
    return Store(id=store_id, name=f"Store {store_id}", location=GeoPoint(lat=35.68, lng=139.76))


def _gps(store_id: str, confidence: int, method=DetectionMethod.DISTANCE) -> Candidate:
    return Candidate(
        store=_store(store_id),
        confidence=confidence,
        method=method,
        distance_meters=42.0,
        inside_geofence=method == DetectionMethod.GEOFENCE,
    )


def _wifi(store_id: str, confidence: int, dbm: float = -65.0) -> Candidate:
    return Candidate(
        store=_store(store_id),
        confidence=confidence,
        method=DetectionMethod.WIFI,
        signal_strength_dbm=dbm,
    )


# ─── Classification ──────────────────────────────────────────────────────────

def test_classify_covers_every_case():
    from storesense.modules.fusion.fusion_engine import FusionCase, classify

    assert classify(None, None) == FusionCase.NONE
    assert classify(_gps("a", 70), None) == FusionCase.GPS_ONLY
    assert classify(None, _wifi("a", 70)) == FusionCase.WIFI_ONLY
    assert classify(_gps("a", 70), _wifi("a", 85)) == FusionCase.AGREEMENT
    assert (
        classify(_gps("a", 95, DetectionMethod.GEOFENCE), _wifi("b", 100))
        == FusionCase.GEOFENCE_OVERRIDE
    )
    assert classify(_gps("a", 100), _wifi("b", 85)) == FusionCase.DISAGREEMENT


def test_distance_candidate_never_overrides():
    from storesense.modules.fusion.fusion_engine import FusionCase, classify
    # High confidence but not inside a geofence
    assert classify(_gps("a", 100, DetectionMethod.DISTANCE), _wifi("b", 85)) == FusionCase.DISAGREEMENT


# ─── Resolution ──────────────────────────────────────────────────────────────

def test_no_signals_no_result():
    from storesense.modules.fusion.fusion_engine import fuse
    assert fuse(None, []) is None


def test_gps_only_passes_through():
    from storesense.modules.fusion.fusion_engine import fuse

    gps = _gps("a", 70)
    assert fuse(gps, []) == gps


def test_wifi_only_passes_through():
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(None, [_wifi("a", 85), _wifi("b", 95)])
    assert result.store.id == "b"
    assert result.method == DetectionMethod.WIFI
    assert result.confidence == 95


def test_scenario_c_geofence_overrides_wifi():
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(_gps("A", 95, DetectionMethod.GEOFENCE), [_wifi("B", 85)])
    assert result.store.id == "A"
    assert result.confidence == 95
    assert result.method == DetectionMethod.GEOFENCE


def test_scenario_d_agreement_boosts_confidence():
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(_gps("C", 90), [_wifi("C", 85, dbm=-61.0)])
    assert result.store.id == "C"
    assert result.confidence == 100
    assert result.method == DetectionMethod.FUSED
    # GPS evidence is kept alongside the radio reading
    assert result.distance_meters == 42.0
    assert result.signal_strength_dbm == -61.0


def test_agreement_adds_bonus_below_cap():
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(_gps("C", 50), [_wifi("C", 70)])
    assert result.confidence == 80


@pytest.mark.parametrize("gps_conf, wifi_conf", [(100, 100), (95, 100), (100, 95), (0, 0)])
def test_agreement_never_exceeds_100(gps_conf, wifi_conf):
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(_gps("C", gps_conf), [_wifi("C", wifi_conf)])
    assert 0 <= result.confidence <= 100


def test_disagreement_higher_confidence_wins():
    from storesense.modules.fusion.fusion_engine import fuse

    assert fuse(_gps("a", 70), [_wifi("b", 85)]).store.id == "b"
    assert fuse(_gps("a", 85), [_wifi("b", 70)]).store.id == "a"


def test_disagreement_tie_goes_to_gps():
    from storesense.modules.fusion.fusion_engine import fuse

    result = fuse(_gps("a", 85), [_wifi("b", 85)])
    assert result.store.id == "a"
    assert result.method == DetectionMethod.DISTANCE


def test_best_wifi_candidate_ties_by_store_id():
    from storesense.modules.fusion.fusion_engine import best_wifi_candidate

    assert best_wifi_candidate([]) is None
    best = best_wifi_candidate([_wifi("z", 95), _wifi("c", 95), _wifi("q", 85)])
    assert best.store.id == "c"


def test_agreement_uses_best_wifi_candidate():
    from storesense.modules.fusion.fusion_engine import fuse

    # The weaker WiFi candidate names the GPS store; the best one does not
    result = fuse(_gps("a", 70), [_wifi("b", 85), _wifi("a", 50)])
    assert result.store.id == "b"
    assert result.method == DetectionMethod.WIFI


def test_best_wifi_candidate_prefers_gps_store_among_ties():
    from storesense.modules.fusion.fusion_engine import best_wifi_candidate

    tied = [_wifi("a", 95), _wifi("b", 95), _wifi("c", 80)]
    assert best_wifi_candidate(tied, _gps("b", 70)).store.id == "b"
    # The GPS store only wins when it is among the top scores
    assert best_wifi_candidate(tied, _gps("c", 70)).store.id == "a"


def test_shared_signature_tie_resolved_by_gps():
    from storesense.modules.fusion.fusion_engine import fuse

    # Two stores of a chain broadcast the same guest network
    result = fuse(_gps("b", 70), [_wifi("a", 95, dbm=-50.0), _wifi("b", 95, dbm=-50.0)])
    assert result.store.id == "b"
    assert result.confidence == 100
    assert result.method == DetectionMethod.FUSED
