# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Detection Orchestrator
Wires sensors, directory, matchers, fusion and the confirmation state
machine into one detection cycle.

Cycle order:
  1. PARALLEL: position fix + radio snapshot (independent timeouts,
     bounded joint wait; a missing signal degrades the mode, never fails)
  2. Directory query: nearby stores around the fix, or stores publishing
     the visible networks when there is no fix (WiFi-only mode)
  3. GPS candidate (geofence containment, else nearest-by-distance)
  4. WiFi candidates
  5. Fusion
  6. Confirmation state machine
  7. DetectionResult

Concurrency:
  - single-flight: a detect() while a cycle runs joins that cycle
  - continuous mode: fixed-interval ticks, skipped while a cycle runs
  - cancel(): aborts the running cycle, state machine back to IDLE
No exception escapes detect(); the worst case is an empty result.
"""

from __future__ import annotations

import asyncio
import traceback
import uuid
from typing import Callable, Optional

from storesense.api.middleware.error_handler import PositionUnavailable, RadioUnavailable
from storesense.config import Settings, get_settings
from storesense.core.confirmed_memory import ConfirmedStoreMemory
from storesense.core.providers import PositionProvider, RadioProvider, StoreDirectory
from storesense.models.detection import Candidate, DetectionResult, DetectionState
from storesense.models.signals import PositionFix, RadioSnapshot
from storesense.models.store import Store
from storesense.modules.confirmation.state_machine import ConfirmationStateMachine
from storesense.modules.fusion.fusion_engine import fuse
from storesense.modules.geospatial.distance import haversine_distance
from storesense.modules.geospatial.geofence_cache import GeofenceCache
from storesense.modules.geospatial.store_locator import locate_gps_candidate
from storesense.modules.wifi.signature_matcher import (
    build_signature_table,
    filter_by_signal_strength,
    match,
)
from storesense.utils.logger import detection_context, get_logger

log = get_logger(__name__)

ResultCallback = Callable[[DetectionResult], None]
ErrorCallback = Callable[[BaseException], None]


class DetectionOrchestrator:
    def __init__(
        self,
        position_provider: PositionProvider,
        radio_provider: RadioProvider,
        directory: StoreDirectory,
        memory: ConfirmedStoreMemory,
        settings: Optional[Settings] = None,
        geofence_cache: Optional[GeofenceCache] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._position = position_provider
        self._radio = radio_provider
        self._directory = directory
        self._cache = geofence_cache if geofence_cache is not None else GeofenceCache()
        self.state_machine = ConfirmationStateMachine(
            memory,
            auto_accept_confidence=self._settings.auto_accept_confidence,
            confirmed_floor=self._settings.confirmed_store_floor,
        )

        self._inflight: Optional[asyncio.Task] = None
        self._continuous: Optional[asyncio.Task] = None
        self.cycles_run = 0
        self.skipped_ticks = 0
        self.last_result: Optional[DetectionResult] = None

    # ─── Public API ──────────────────────────────────────────────────────────

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def state(self) -> DetectionState:
        return self.state_machine.state

    @property
    def geofence_cache(self) -> GeofenceCache:
        return self._cache

    async def detect(self) -> DetectionResult:
        """
        Run (or join) a detection cycle and return its result.
        A cycle cancelled through cancel() yields the empty result.
        """
        task = self._ensure_cycle()
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or not current.cancelling()):
                return DetectionResult.empty()
            raise

    def cancel(self) -> bool:
        """Cancel the in-flight cycle. Returns False if nothing was running."""
        if not self.in_flight:
            return False
        self._inflight.cancel()
        log.info("detection_cancel_requested")
        return True

    def start_continuous(
        self,
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        interval_seconds: Optional[float] = None,
    ) -> None:
        """Re-trigger detection every interval; ticks that find a cycle running are dropped."""
        if self._continuous is not None and not self._continuous.done():
            log.warning("continuous_detection_already_running")
            return

        interval = interval_seconds or self._settings.continuous_interval_seconds
        self._continuous = asyncio.create_task(
            self._continuous_loop(on_result, on_error, interval)
        )
        log.info("continuous_detection_started", interval_seconds=interval)

    async def stop_continuous(self) -> None:
        """Stop the ticker. A cycle already running is left to finish."""
        task = self._continuous
        self._continuous = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info(
            "continuous_detection_stopped",
            cycles_run=self.cycles_run,
            skipped_ticks=self.skipped_ticks,
        )

    # ── User actions, forwarded to the state machine ──

    def accept(self) -> Candidate:
        return self.state_machine.accept()

    def reject(self) -> None:
        self.state_machine.reject()

    def change(self, store: Store) -> Candidate:
        return self.state_machine.change(store)

    # ─── Cycle ───────────────────────────────────────────────────────────────

    def _ensure_cycle(self) -> asyncio.Task:
        if self.in_flight:
            log.debug("detection_joined_inflight")
            return self._inflight
        self._inflight = asyncio.create_task(self._run_cycle())
        return self._inflight

    async def _run_cycle(self) -> DetectionResult:
        with detection_context(uuid.uuid4().hex[:12]):
            log.info("detection_cycle_start")

            try:
                self.state_machine.begin()
                result = await self._run()
            except asyncio.CancelledError:
                self.state_machine.abort()
                log.info("detection_cycle_cancelled")
                raise
            except Exception as exc:
                log.error(
                    "detection_cycle_failed",
                    error=f"{type(exc).__name__}: {exc}",
                    traceback=traceback.format_exc(),
                )
                self.state_machine.abort()
                result = DetectionResult.empty()
            finally:
                self.cycles_run += 1

            self.last_result = result
            log.info(
                "detection_cycle_complete",
                store_id=result.store.id if result.store else None,
                method=result.method.value,
                confidence=result.confidence,
                state=result.state.value,
            )
            return result

    async def _run(self) -> DetectionResult:
        # ── Stage 1: PARALLEL sensor reads ───────────────────────────────────
        fix, snapshot = await self._acquire_signals()
        if snapshot is not None and self._settings.min_signal_dbm is not None:
            snapshot = filter_by_signal_strength(snapshot, self._settings.min_signal_dbm)

        # ── Stage 2: Directory query ─────────────────────────────────────────
        version = self._directory.version
        stores = await self._query_directory(fix, snapshot)
        if not stores:
            log.info(
                "no_candidates_nearby",
                has_fix=fix is not None,
                has_snapshot=snapshot is not None,
            )
            self.state_machine.resolve(None)
            return DetectionResult.empty()

        # ── Stage 3: GPS candidate ───────────────────────────────────────────
        gps_candidate = None
        if fix is not None:
            gps_candidate = locate_gps_candidate(fix, stores, self._cache, version)

        # ── Stage 4: WiFi candidates ─────────────────────────────────────────
        wifi_candidates: list[Candidate] = []
        if snapshot is not None and not snapshot.is_empty:
            wifi_candidates = match(snapshot, build_signature_table(stores))

        # ── Stage 5: Fusion ──────────────────────────────────────────────────
        winner = fuse(gps_candidate, wifi_candidates)

        # ── Stage 6: Confirmation ────────────────────────────────────────────
        state = self.state_machine.resolve(winner)

        alternatives = _alternatives(fix, stores, winner)
        if winner is None:
            return DetectionResult.empty(alternatives=alternatives)
        return DetectionResult.from_candidate(
            winner, state=state, alternatives=alternatives
        )

    # ─── Sensors ─────────────────────────────────────────────────────────────

    async def _acquire_signals(self) -> tuple[Optional[PositionFix], Optional[RadioSnapshot]]:
        fix_task = asyncio.create_task(self._read_position())
        radio_task = asyncio.create_task(self._read_radio())

        try:
            done, pending = await asyncio.wait(
                {fix_task, radio_task},
                timeout=self._settings.max_sensor_wait_seconds,
            )
        finally:
            for task in (fix_task, radio_task):
                if not task.done():
                    task.cancel()

        for task in pending:
            log.warning(
                "sensor_wait_exceeded",
                sensor="position" if task is fix_task else "radio",
                max_wait_seconds=self._settings.max_sensor_wait_seconds,
            )

        fix = fix_task.result() if fix_task in done else None
        snapshot = radio_task.result() if radio_task in done else None

        log.info(
            "signals_acquired",
            has_fix=fix is not None,
            observations=len(snapshot.observations) if snapshot is not None else None,
        )
        return fix, snapshot

    async def _read_position(self) -> Optional[PositionFix]:
        timeout = self._settings.position_timeout_seconds
        try:
            return await asyncio.wait_for(
                self._position.get_current_fix(timeout), timeout=timeout
            )
        except asyncio.TimeoutError:
            log.warning("position_unavailable", reason="timeout", timeout_seconds=timeout)
        except PositionUnavailable as exc:
            log.warning("position_unavailable", reason=str(exc))
        except Exception as exc:
            log.warning(
                "position_provider_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
        return None

    async def _read_radio(self) -> Optional[RadioSnapshot]:
        timeout = self._settings.radio_timeout_seconds
        try:
            return await asyncio.wait_for(
                self._radio.get_current_snapshot(), timeout=timeout
            )
        except asyncio.TimeoutError:
            log.warning("radio_unavailable", reason="timeout", timeout_seconds=timeout)
        except RadioUnavailable as exc:
            log.warning("radio_unavailable", reason=str(exc))
        except Exception as exc:
            log.warning(
                "radio_provider_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
        return None

    async def _query_directory(
        self,
        fix: Optional[PositionFix],
        snapshot: Optional[RadioSnapshot],
    ) -> list[Store]:
        try:
            if fix is not None:
                stores = await self._directory.query_nearby(
                    fix.point, self._settings.search_radius_meters
                )
                mode = "nearby"
            elif snapshot is not None and not snapshot.is_empty:
                stores = await self._directory.query_by_signatures(snapshot.signatures())
                mode = "wifi_only"
            else:
                return []
        except Exception as exc:
            log.warning(
                "directory_query_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return []

        log.debug("directory_queried", mode=mode, stores=len(stores))
        return list(stores)

    # ─── Continuous mode ─────────────────────────────────────────────────────

    async def _continuous_loop(
        self,
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback],
        interval: float,
    ) -> None:
        while True:
            if self.in_flight:
                self.skipped_ticks += 1
                log.info("continuous_tick_skipped", skipped_ticks=self.skipped_ticks)
            else:
                task = self._ensure_cycle()
                task.add_done_callback(
                    lambda t: self._deliver(t, on_result, on_error)
                )
            await asyncio.sleep(interval)

    def _deliver(
        self,
        task: asyncio.Task,
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback],
    ) -> None:
        if task.cancelled():
            return
        try:
            exc = task.exception()
            if exc is not None:
                if on_error is not None:
                    on_error(exc)
                return
            on_result(task.result())
        except Exception as cb_exc:
            log.error(
                "continuous_callback_failed",
                error=f"{type(cb_exc).__name__}: {cb_exc}",
            )


def _alternatives(
    fix: Optional[PositionFix],
    stores: list[Store],
    winner: Optional[Candidate],
) -> tuple[Store, ...]:
    """Every other candidate store, nearest first (by id without a fix)."""
    others = [s for s in stores if winner is None or s.id != winner.store.id]
    if fix is not None:
        others.sort(key=lambda s: (haversine_distance(fix.point, s.location), s.id))
    else:
        others.sort(key=lambda s: s.id)
    return tuple(others)
