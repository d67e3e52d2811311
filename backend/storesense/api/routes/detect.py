# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — POST /detect
Runs one detection cycle over the readings and stores supplied in the
request body, against the process-wide confirmed-store memory.
"""

from __future__ import annotations

from fastapi import APIRouter

from storesense.core.orchestrator import DetectionOrchestrator
from storesense.core.providers import (
    InMemoryStoreDirectory,
    StaticPositionProvider,
    StaticRadioProvider,
)
from storesense.dependencies import ConfirmedMemoryDep
from storesense.models.detection import DetectionResult, DetectRequest
from storesense.utils.logger import get_logger

router = APIRouter(tags=["detect"])
log = get_logger(__name__)


@router.post(
    "/detect",
    response_model=DetectionResult,
    summary="Detect the current store",
    description=(
        "Fuses an optional position fix and an optional radio snapshot into a "
        "single store decision. Either reading may be omitted: without a fix the "
        "engine runs in WiFi-only mode, without a snapshot in GPS-only mode. "
        "A result with store=null means no store could be determined."
    ),
)
async def detect_store(body: DetectRequest, memory: ConfirmedMemoryDep) -> DetectionResult:
    orchestrator = DetectionOrchestrator(
        position_provider=StaticPositionProvider(body.fix),
        radio_provider=StaticRadioProvider(body.snapshot),
        directory=InMemoryStoreDirectory(body.stores),
        memory=memory,
    )
    result = await orchestrator.detect()

    log.info(
        "detect_request_complete",
        stores=len(body.stores),
        degenerate_geofences=orchestrator.geofence_cache.stats()["degenerate"],
        store_id=result.store.id if result.store else None,
        method=result.method.value,
        confidence=result.confidence,
    )
    return result
