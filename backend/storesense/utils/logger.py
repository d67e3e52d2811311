# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — Structured Logging
JSON-formatted logs via structlog. Every detection cycle binds a
detection_id so sensor reads, matching and fusion lines can be joined.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor

from storesense.config import get_settings


def _add_app_info(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    """Inject application name into every log entry."""
    event_dict["app"] = "storesense"
    return event_dict


def _drop_color_message_key(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    """Remove uvicorn's color_message to keep logs clean."""
    event_dict.pop("color_message", None)
    return event_dict


# Log fields carrying a physical measurement, by key suffix
MEASUREMENT_SUFFIXES = ("_m", "_meters", "_dbm", "_seconds")
MEASUREMENT_DECIMALS = 2


def _round_measurements(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    """Round measurement fields to two decimals."""
    for key, value in event_dict.items():
        if isinstance(value, float) and key.endswith(MEASUREMENT_SUFFIXES):
            event_dict[key] = round(value, MEASUREMENT_DECIMALS)
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog for JSON output in production and
    human-readable console output in development (DEBUG level).
    Called once at application startup.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_app_info,
        _drop_color_message_key,
        _round_measurements,
    ]

    if settings.log_level == "DEBUG":
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )

    # stdlib passthrough for uvicorn/fastapi
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str = "storesense") -> structlog.BoundLogger:
    """
    Return a structlog bound logger.

    Usage:
        log = get_logger(__name__)
        log.info("gps_candidate_selected", store_id="s-1", confidence=98)

    To tag every line of a detection cycle:
        with detection_context(detection_id):
            log.info("detection_cycle_start")
    """
    return structlog.get_logger(name)


@contextmanager
def detection_context(detection_id: str, **extra: Any) -> Iterator[None]:
    """
    Bind detection_id (plus any extra keys) to every log line emitted
    inside the block. Earlier bindings are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(detection_id=detection_id, **extra):
        yield
