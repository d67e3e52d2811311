# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Confirmation Module
Public API for the confirmation lifecycle.
"""

from storesense.modules.confirmation.state_machine import ConfirmationStateMachine

__all__ = [
    "ConfirmationStateMachine",
]
