# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 1 infrastructure smoke tests.
Tests config loading, the confirmed-store memory, the reference
providers and directory, model invariants, and the API skeleton.
No network, no Redis required.
"""

import pytest

from storesense.models.geo import GeoPoint

# ─── Config ──────────────────────────────────────────────────────────────────

def test_settings_load_defaults():
    from storesense.config import Settings
    # Pin log_level so a LOG_LEVEL set in CI does not interfere
    s = Settings(_env_file=None, log_level="INFO")
    assert s.search_radius_meters == 150.0
    assert s.position_timeout_seconds == 5.0
    assert s.radio_timeout_seconds == 3.0
    assert s.auto_accept_confidence == 95
    assert s.confirmed_store_floor == 0
    assert s.continuous_interval_seconds == 10.0
    assert s.confirmed_memory_backend in ("memory", "redis")
    assert s.min_signal_dbm is None
    assert s.cors_origins == ["http://localhost:3000"]


def test_settings_override():
    from storesense.config import Settings
    s = Settings(_env_file=None, auto_accept_confidence=80, log_level="WARNING")
    assert s.auto_accept_confidence == 80
    assert s.log_level == "WARNING"


def test_cors_origins_parsed_from_environment(monkeypatch):
    from storesense.config import Settings

    monkeypatch.setenv("CORS_ORIGINS", '["https://kiosk.example.com"]')
    s = Settings(_env_file=None)
    assert s.cors_origins == ["https://kiosk.example.com"]


def test_get_settings_is_cached():
    from storesense.config import get_settings
    assert get_settings() is get_settings()


# ─── Logging ─────────────────────────────────────────────────────────────────

def test_measurement_fields_rounded():
    from storesense.utils.logger import _round_measurements

    event = _round_measurements(None, "info", {
        "event": "gps_candidate_selected",
        "distance_m": 42.123456,
        "signal_strength_dbm": -65.4321,
        "confidence": 98,
        "coverage": 66.66666,
    })
    assert event["distance_m"] == 42.12
    assert event["signal_strength_dbm"] == -65.43
    assert event["confidence"] == 98
    assert event["coverage"] == 66.66666


def test_detection_context_binds_and_restores():
    import structlog

    from storesense.utils.logger import detection_context

    structlog.contextvars.clear_contextvars()
    with detection_context("abc123", mode="continuous"):
        bound = structlog.contextvars.get_contextvars()
        assert bound == {"detection_id": "abc123", "mode": "continuous"}
    assert "detection_id" not in structlog.contextvars.get_contextvars()


# ─── InMemoryConfirmedStoreMemory ────────────────────────────────────────────

def test_memory_add_contains_remove():
    from storesense.core.confirmed_memory import InMemoryConfirmedStoreMemory

    memory = InMemoryConfirmedStoreMemory()
    assert memory.contains("s1") is False

    memory.add("s1")
    memory.add("s1")
    assert memory.contains("s1") is True
    assert memory.count() == 1

    memory.remove("s1")
    memory.remove("never-added")
    assert memory.contains("s1") is False


def test_memory_seeded_ids_snapshot():
    from storesense.core.confirmed_memory import InMemoryConfirmedStoreMemory

    memory = InMemoryConfirmedStoreMemory(["a", "b"])
    ids = memory.store_ids()
    ids.add("c")
    assert memory.store_ids() == {"a", "b"}


# ─── Models ──────────────────────────────────────────────────────────────────

def test_geopoint_rejects_out_of_range():
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        GeoPoint(lat=91.0, lng=0.0)
    with pytest.raises(ValidationError):
        GeoPoint(lat=0.0, lng=-180.5)


def test_store_is_hashable_and_parses_geofence_union():
    from storesense.models.geo import PolygonGeofence
    from storesense.models.store import Store

    store = Store.model_validate({
        "id": "s1",
        "name": "Corner Shop",
        "location": {"lat": 1.0, "lng": 2.0},
        "geofence": {
            "type": "polygon",
            "vertices": [
                {"lat": 0.0, "lng": 0.0},
                {"lat": 0.0, "lng": 0.001},
                {"lat": 0.001, "lng": 0.001},
            ],
        },
    })
    assert isinstance(store.geofence, PolygonGeofence)
    assert {store: 1}[store] == 1


def test_network_signature_usable_and_normalised():
    from storesense.models.store import NetworkSignature

    assert NetworkSignature().is_usable is False
    assert NetworkSignature(ssid="x").is_usable is True
    assert NetworkSignature(bssid=" AA:BB ").normalised_bssid == "aa:bb"


def test_empty_result_invariants():
    from pydantic import ValidationError

    from storesense.models.detection import DetectionMethod, DetectionResult

    empty = DetectionResult.empty()
    assert empty.store is None
    assert empty.confidence == 0
    assert empty.method == DetectionMethod.NONE
    assert empty.requires_confirmation is False

    with pytest.raises(ValidationError):
        DetectionResult(confidence=50)


def test_candidate_rejects_method_none():
    from pydantic import ValidationError

    from storesense.models.detection import Candidate, DetectionMethod
    from storesense.models.store import Store

    store = Store(id="s", name="S", location=GeoPoint(lat=0.0, lng=0.0))
    with pytest.raises(ValidationError):
        Candidate(store=store, confidence=10, method=DetectionMethod.NONE)
    with pytest.raises(ValidationError):
        Candidate(store=store, confidence=101, method=DetectionMethod.WIFI)


# ─── Reference Providers ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_static_providers_raise_when_unavailable():
    from storesense.api.middleware.error_handler import PositionUnavailable, RadioUnavailable
    from storesense.core.providers import StaticPositionProvider, StaticRadioProvider

    with pytest.raises(PositionUnavailable):
        await StaticPositionProvider(None).get_current_fix(1.0)
    with pytest.raises(RadioUnavailable):
        await StaticRadioProvider(None).get_current_snapshot()


@pytest.mark.asyncio
async def test_directory_queries():
    from storesense.core.providers import InMemoryStoreDirectory
    from storesense.models.store import NetworkSignature, Store

    near = Store(
        id="near", name="Near", location=GeoPoint(lat=0.0, lng=0.0005),
        signatures=(NetworkSignature(bssid="AA:AA:AA:AA:AA:AA"),),
    )
    far = Store(
        id="far", name="Far", location=GeoPoint(lat=0.1, lng=0.1),
        signatures=(NetworkSignature(ssid="Far-Guest"),),
    )
    directory = InMemoryStoreDirectory([far, near])

    nearby = await directory.query_nearby(GeoPoint(lat=0.0, lng=0.0), radius_meters=150.0)
    assert [s.id for s in nearby] == ["near"]

    by_sig = await directory.query_by_signatures([
        NetworkSignature(bssid="aa:aa:aa:aa:aa:aa"),
        NetworkSignature(ssid="Far-Guest"),
    ])
    assert [s.id for s in by_sig] == ["far", "near"]


def test_directory_version_bumps_on_replace():
    from storesense.core.providers import InMemoryStoreDirectory

    directory = InMemoryStoreDirectory()
    assert directory.version == 0
    directory.replace_stores([])
    assert directory.version == 1


# ─── API Smoke Tests ─────────────────────────────────────────────────────────
# Use ASGITransport and asgi_lifespan so the FastAPI lifespan runs
# (which calls init_confirmed_memory()).

from contextlib import asynccontextmanager
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager


@asynccontextmanager
async def lifespan_client(**env: str):
    """
    Spin up the full FastAPI app including its lifespan (startup/shutdown),
    then yield an AsyncClient pointed at it.
    Extra keyword arguments are set as environment variables for the run.
    """
    import os
    os.environ["CONFIRMED_MEMORY_BACKEND"] = "memory"
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ.update(env)

    # Clear settings cache so env overrides above take effect
    from storesense.config import get_settings
    get_settings.cache_clear()

    from storesense.main import create_app
    test_app = create_app()

    try:
        async with LifespanManager(test_app) as manager:
            transport = ASGITransport(app=manager.app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
    finally:
        for key in env:
            os.environ.pop(key, None)
        get_settings.cache_clear()


def _detect_body(north_deg: float = 0.00009) -> dict:
    centre = {"lat": 40.0, "lng": -3.0}
    return {
        "fix": {"point": {"lat": 40.0 + north_deg, "lng": -3.0}},
        "stores": [
            {
                "id": "s1",
                "name": "Plaza Store",
                "location": centre,
                "geofence": {"type": "circle", "center": centre, "radius_meters": 75.0},
            },
        ],
    }


@pytest.mark.asyncio
async def test_health_endpoint():
    async with lifespan_client() as c:
        resp = await c.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "storesense"
    assert data["confirmed_memory"] == "memory"


@pytest.mark.asyncio
async def test_detect_endpoint_geofence_hit():
    async with lifespan_client() as c:
        resp = await c.post("/detect", json=_detect_body())
    assert resp.status_code == 200
    data = resp.json()
    assert data["store"]["id"] == "s1"
    assert data["method"] == "geofence"
    assert data["confidence"] == 100
    assert data["state"] == "silent_accept"


@pytest.mark.asyncio
async def test_detect_endpoint_without_signals():
    async with lifespan_client() as c:
        resp = await c.post("/detect", json={"stores": []})
    assert resp.status_code == 200
    data = resp.json()
    assert data["store"] is None
    assert data["method"] == "none"


@pytest.mark.asyncio
async def test_detect_endpoint_rejects_bad_coordinates():
    body = _detect_body()
    body["fix"]["point"]["lat"] = 123.0
    async with lifespan_client() as c:
        resp = await c.post("/detect", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_detect_endpoint_degenerate_geofence_falls_back_to_distance():
    # 0.0002 deg north is ~22 m: distance band 95
    body = _detect_body(north_deg=0.0002)
    body["stores"][0]["geofence"]["radius_meters"] = -1.0
    async with lifespan_client() as c:
        resp = await c.post("/detect", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["store"]["id"] == "s1"
    assert data["method"] == "distance"
    assert data["inside_geofence"] is False


@pytest.mark.asyncio
async def test_cors_origins_come_from_settings():
    async with lifespan_client(CORS_ORIGINS='["https://kiosk.example.com"]') as c:
        allowed = await c.get("/health", headers={"Origin": "https://kiosk.example.com"})
        other = await c.get("/health", headers={"Origin": "http://localhost:5173"})
    assert allowed.headers["access-control-allow-origin"] == "https://kiosk.example.com"
    assert "access-control-allow-origin" not in other.headers


@pytest.mark.asyncio
async def test_confirmation_round_trip_affects_detection():
    # 0.0008 deg north is ~89 m: outside the 75 m fence, distance band 70
    body = _detect_body(north_deg=0.0008)
    async with lifespan_client() as c:
        first = (await c.post("/detect", json=body)).json()
        assert first["requires_confirmation"] is True

        put = await c.put("/confirmations/s1")
        assert put.json() == {"store_id": "s1", "confirmed": True}
        assert (await c.get("/confirmations/s1")).json()["confirmed"] is True

        second = (await c.post("/detect", json=body)).json()
        assert second["state"] == "silent_accept"
        assert second["requires_confirmation"] is False

        delete = await c.delete("/confirmations/s1")
        assert delete.json()["confirmed"] is False
        assert (await c.get("/confirmations/s1")).json()["confirmed"] is False


@pytest.mark.asyncio
async def test_docs_available():
    async with lifespan_client() as c:
        resp = await c.get("/docs")
    assert resp.status_code == 200
