# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Detection Engine Modules

  geospatial    GPS candidate from geofence containment or distance
  wifi          candidates from radio-snapshot signature matching
  fusion        GPS + WiFi decision table
  confirmation  lifecycle of the "current store" decision

core/orchestrator.py runs them in that order for each detection cycle.
"""
