# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — /confirmations/{store_id}
Accept and forget actions for the confirmed-store memory. A confirmed
store is silently accepted on later detections.
"""

from __future__ import annotations

from fastapi import APIRouter

from storesense.dependencies import ConfirmedMemoryDep
from storesense.models.detection import ConfirmationStatus

router = APIRouter(tags=["confirmations"])


@router.put(
    "/confirmations/{store_id}",
    response_model=ConfirmationStatus,
    summary="Remember a store the user accepted",
)
async def confirm_store(store_id: str, memory: ConfirmedMemoryDep) -> ConfirmationStatus:
    memory.add(store_id)
    return ConfirmationStatus(store_id=store_id, confirmed=True)


@router.get(
    "/confirmations/{store_id}",
    response_model=ConfirmationStatus,
    summary="Check whether a store was confirmed before",
)
async def get_confirmation(store_id: str, memory: ConfirmedMemoryDep) -> ConfirmationStatus:
    return ConfirmationStatus(store_id=store_id, confirmed=memory.contains(store_id))


@router.delete(
    "/confirmations/{store_id}",
    response_model=ConfirmationStatus,
    summary="Forget a confirmation",
)
async def forget_confirmation(store_id: str, memory: ConfirmedMemoryDep) -> ConfirmationStatus:
    memory.remove(store_id)
    return ConfirmationStatus(store_id=store_id, confirmed=False)
