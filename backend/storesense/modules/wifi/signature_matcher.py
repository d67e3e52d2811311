# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — WiFi Signature Matcher

Matches a radio snapshot against each store's known network signatures.

For every (visible network, store) pair:
  BSSID equal (case-insensitive)  → strong match, base + BSSID_BONUS
  else SSID equal (exact)         → weak match, base only
where base comes from the observation's signal strength
(see signal_bands.py).

Each store keeps only its strongest match, ranked by
(confidence, signal strength, BSSID over SSID). Stores that share a
signature (the same guest network name at several branches) all get
candidates; choosing between them is left to fusion.

Signatures carrying neither SSID nor BSSID are MalformedSignature:
logged as warnings and skipped, on either side of the comparison.
A single-entry snapshot is ordinary input, not a special case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from storesense.api.middleware.error_handler import MalformedSignature
from storesense.models.detection import Candidate, DetectionMethod
from storesense.models.signals import RadioObservation, RadioSnapshot
from storesense.models.store import NetworkSignature, Store
from storesense.modules.wifi.signal_bands import match_confidence
from storesense.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class _NetworkMatch:
    store: Store
    confidence: int
    signal_strength_dbm: float
    bssid_match: bool

    @property
    def rank(self) -> tuple[int, float, bool]:
        return self.confidence, self.signal_strength_dbm, self.bssid_match


def ensure_usable(signature: NetworkSignature, source: str) -> NetworkSignature:
    """Raise MalformedSignature if the signature cannot match anything."""
    if not signature.is_usable:
        raise MalformedSignature(f"{source}: network signature has neither ssid nor bssid")
    return signature


def _usable_signatures(store: Store, known: Sequence[NetworkSignature]) -> list[NetworkSignature]:
    usable = []
    for i, sig in enumerate(known):
        try:
            usable.append(ensure_usable(sig, source=f"store {store.id} signature {i}"))
        except MalformedSignature as exc:
            log.warning("malformed_signature_skipped", store_id=store.id, error=str(exc))
    return usable


def _compare(observed: NetworkSignature, known: Iterable[NetworkSignature]) -> Optional[bool]:
    """
    True for a BSSID match, False for an SSID-only match, None for no match.
    A BSSID match anywhere in known beats an SSID match elsewhere.
    """
    observed_bssid = observed.normalised_bssid
    ssid_hit = False
    for sig in known:
        if observed_bssid and observed_bssid == sig.normalised_bssid:
            return True
        if observed.ssid and observed.ssid == sig.ssid:
            ssid_hit = True
    return False if ssid_hit else None


def match(
    snapshot: RadioSnapshot,
    store_signatures: Mapping[Store, Sequence[NetworkSignature]],
) -> list[Candidate]:
    """
    Match a radio snapshot against per-store signature tables.

    Args:
        snapshot:          Visible networks (0..N observations)
        store_signatures:  Store → its known network signatures

    Returns:
        One WiFi Candidate per store with at least one match, sorted by
        confidence descending, then store id.
    """
    # Deterministic iteration regardless of mapping order
    tables = [
        (store, _usable_signatures(store, sigs))
        for store, sigs in sorted(store_signatures.items(), key=lambda kv: kv[0].id)
    ]
    tables = [(store, sigs) for store, sigs in tables if sigs]

    best: dict[str, _NetworkMatch] = {}

    for idx, observation in enumerate(snapshot.observations):
        try:
            observed = ensure_usable(observation.signature, source=f"snapshot entry {idx}")
        except MalformedSignature as exc:
            log.warning("malformed_signature_skipped", index=idx, error=str(exc))
            continue

        for store, known in tables:
            bssid_match = _compare(observed, known)
            if bssid_match is None:
                continue

            found = _NetworkMatch(
                store=store,
                confidence=match_confidence(observation.signal_strength_dbm, bssid_match),
                signal_strength_dbm=observation.signal_strength_dbm,
                bssid_match=bssid_match,
            )
            current = best.get(store.id)
            if current is None or found.rank > current.rank:
                best[store.id] = found

    candidates = [
        Candidate(
            store=m.store,
            confidence=m.confidence,
            method=DetectionMethod.WIFI,
            signal_strength_dbm=m.signal_strength_dbm,
        )
        for m in best.values()
    ]
    candidates.sort(key=lambda c: (-c.confidence, c.store.id))

    log.info(
        "wifi_matching_complete",
        observations=len(snapshot.observations),
        stores_with_signatures=len(tables),
        matched_stores=len(candidates),
    )
    return candidates


def build_signature_table(stores: Iterable[Store]) -> dict[Store, tuple[NetworkSignature, ...]]:
    """Store → signatures, for stores that publish at least one."""
    return {store: store.signatures for store in stores if store.signatures}


def filter_by_signal_strength(snapshot: RadioSnapshot, threshold_dbm: float) -> RadioSnapshot:
    """Keep observations at or above threshold_dbm."""
    kept = tuple(o for o in snapshot.observations if o.signal_strength_dbm >= threshold_dbm)
    if len(kept) != len(snapshot.observations):
        log.debug(
            "weak_observations_dropped",
            dropped=len(snapshot.observations) - len(kept),
            threshold_dbm=threshold_dbm,
        )
    return RadioSnapshot(observations=kept)


def strongest_observation(snapshot: RadioSnapshot) -> Optional[RadioObservation]:
    if snapshot.is_empty:
        return None
    return max(snapshot.observations, key=lambda o: o.signal_strength_dbm)
