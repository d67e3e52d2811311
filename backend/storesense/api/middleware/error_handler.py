# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Error Taxonomy and Global Error Handler
Engine exception classes plus the FastAPI handlers that convert them
into structured JSON error responses. Registered on the app in main.py.

Inside a detection cycle every one of these is recoverable:
  PositionUnavailable → WiFi-only mode
  RadioUnavailable    → GPS-only mode
  MalformedSignature  → entry skipped with a warning
  DegenerateGeofence  → store treated as geofence-less
An empty directory response is not an error at all; it yields a
DetectionResult with store=None.
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storesense.utils.logger import get_logger

log = get_logger(__name__)


class DetectionError(RuntimeError):
    """Base class for engine errors that may surface outside a cycle."""


class PositionUnavailable(DetectionError):
    """Raised by a position provider when a fix is denied or times out."""


class RadioUnavailable(DetectionError):
    """Raised by a radio provider when scanning is unsupported or denied."""


class InvalidTransitionError(DetectionError):
    """Raised when the confirmation state machine is driven out of order."""


class MalformedSignature(ValueError):
    """A network signature with neither SSID nor BSSID."""


class DegenerateGeofence(ValueError):
    """A geofence whose geometry cannot support containment tests."""


def _error_body(code: str, message: str, detail: str | None = None) -> dict:
    body = {"error": {"code": code, "message": message}}
    if detail:
        body["error"]["detail"] = detail
    return body


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all global exception handlers on the FastAPI application.
    Call this in main.py after creating the app instance.
    """

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(
        req: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        log.warning("invalid_transition", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body(
                code="INVALID_TRANSITION",
                message=str(exc),
            ),
        )

    @app.exception_handler(DetectionError)
    async def detection_error_handler(
        req: Request, exc: DetectionError
    ) -> JSONResponse:
        log.error("detection_error", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="DETECTION_ERROR",
                message=str(exc),
                detail=type(exc).__name__,
            ),
        )

    @app.exception_handler(Exception)
    async def generic_handler(req: Request, exc: Exception) -> JSONResponse:
        tb = traceback.format_exc()
        log.error(
            "unhandled_exception",
            path=str(req.url),
            error=str(exc),
            exc_type=type(exc).__name__,
            traceback=tb,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred.",
            ),
        )
