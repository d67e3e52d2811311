# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Confirmation State Machine

  IDLE ──begin──▶ DETECTING ──resolve──▶ RESOLVED ─┬─▶ SILENT_ACCEPT
                                                    └─▶ PENDING_CONFIRMATION
  PENDING_CONFIRMATION ──accept / change──▶ CONFIRMED
  PENDING_CONFIRMATION ──reject──▶ IDLE
  any ──abort──▶ IDLE

RESOLVED is transient: resolve() records it and immediately settles.
  no candidate                                    → IDLE (manual selection)
  store confirmed before and confidence >= floor  → SILENT_ACCEPT
  confidence >= auto-accept threshold             → SILENT_ACCEPT
  otherwise                                       → PENDING_CONFIRMATION

The floor defaults to 0: a store the user confirmed once is trusted
regardless of how weak the current evidence is.
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from storesense.api.middleware.error_handler import InvalidTransitionError
from storesense.config import get_settings
from storesense.core.confirmed_memory import ConfirmedStoreMemory
from storesense.models.detection import Candidate, DetectionMethod, DetectionState
from storesense.models.store import Store
from storesense.utils.logger import get_logger

log = get_logger(__name__)

# States from which a fresh detection cycle may start
_RESTARTABLE = frozenset({
    DetectionState.IDLE,
    DetectionState.SILENT_ACCEPT,
    DetectionState.PENDING_CONFIRMATION,
    DetectionState.CONFIRMED,
})

# Recent states kept for inspection; older entries fall off
HISTORY_LIMIT = 32


class ConfirmationStateMachine:
    """
    Lifecycle of one caller's "current store" decision.
    The memory is read, never written.
    """

    def __init__(
        self,
        memory: ConfirmedStoreMemory,
        auto_accept_confidence: Optional[int] = None,
        confirmed_floor: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._memory = memory
        self.auto_accept_confidence = (
            settings.auto_accept_confidence
            if auto_accept_confidence is None else auto_accept_confidence
        )
        self.confirmed_floor = (
            settings.confirmed_store_floor if confirmed_floor is None else confirmed_floor
        )
        self._state = DetectionState.IDLE
        self._candidate: Optional[Candidate] = None
        self.history: deque[DetectionState] = deque(
            [DetectionState.IDLE], maxlen=HISTORY_LIMIT
        )

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def candidate(self) -> Optional[Candidate]:
        return self._candidate

    @property
    def requires_confirmation(self) -> bool:
        return self._state == DetectionState.PENDING_CONFIRMATION

    def _move(self, new_state: DetectionState, event: str) -> None:
        log.debug(
            "confirmation_transition",
            transition=event,
            from_state=self._state.value,
            to_state=new_state.value,
            store_id=self._candidate.store.id if self._candidate else None,
        )
        self._state = new_state
        self.history.append(new_state)

    def _require(self, event: str, *allowed: DetectionState) -> None:
        if self._state not in allowed:
            raise InvalidTransitionError(
                f"cannot {event} from state '{self._state.value}'; "
                f"expected one of {[s.value for s in allowed]}"
            )

    # ─── Detection cycle ─────────────────────────────────────────────────────

    def begin(self) -> None:
        self._require("begin", *_RESTARTABLE)
        self._candidate = None
        self._move(DetectionState.DETECTING, "begin")

    def decide(self, candidate: Candidate) -> DetectionState:
        """Terminal state a resolved candidate settles into. Pure."""
        if (
            self._memory.contains(candidate.store.id)
            and candidate.confidence >= self.confirmed_floor
        ):
            return DetectionState.SILENT_ACCEPT
        if candidate.confidence >= self.auto_accept_confidence:
            return DetectionState.SILENT_ACCEPT
        return DetectionState.PENDING_CONFIRMATION

    def resolve(self, candidate: Optional[Candidate]) -> DetectionState:
        self._require("resolve", DetectionState.DETECTING)
        self._candidate = candidate
        self._move(DetectionState.RESOLVED, "resolve")

        if candidate is None:
            self._move(DetectionState.IDLE, "no_candidate")
        else:
            self._move(self.decide(candidate), "settle")

        log.info(
            "confirmation_resolved",
            state=self._state.value,
            store_id=candidate.store.id if candidate else None,
            confidence=candidate.confidence if candidate else 0,
        )
        return self._state

    def abort(self) -> None:
        """Return to IDLE from anywhere; used when a cycle is cancelled."""
        if self._state != DetectionState.IDLE:
            self._candidate = None
            self._move(DetectionState.IDLE, "abort")

    # ─── User actions (external UI) ──────────────────────────────────────────

    def accept(self) -> Candidate:
        self._require("accept", DetectionState.PENDING_CONFIRMATION)
        self._move(DetectionState.CONFIRMED, "accept")
        return self._candidate

    def reject(self) -> None:
        self._require("reject", DetectionState.PENDING_CONFIRMATION)
        self._candidate = None
        self._move(DetectionState.IDLE, "reject")

    def change(self, store: Store) -> Candidate:
        """User picked a different store: confirmed at full confidence."""
        self._require("change", DetectionState.PENDING_CONFIRMATION)
        previous = self._candidate
        same_store = previous is not None and previous.store.id == store.id
        self._candidate = Candidate(
            store=store,
            confidence=100,
            method=DetectionMethod.MANUAL,
            distance_meters=previous.distance_meters if same_store else None,
            inside_geofence=previous.inside_geofence if same_store else False,
        )
        self._move(DetectionState.CONFIRMED, "change")
        return self._candidate
