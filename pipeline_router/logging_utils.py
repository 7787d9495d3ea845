from __future__ import annotations

import logging
from typing import Any

from pythonjsonlogger import jsonlogger

from pipeline_router.settings import settings


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger() -> logging.Logger:
    logger = logging.getLogger("pipeline_router")

    # Streamlit re-executes the script on every interaction
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter())
    logger.addHandler(handler)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


LOGGER: logging.Logger | None = None


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    global LOGGER
    if LOGGER is None:
        LOGGER = get_logger()
    LOGGER.log(level, event, extra={"event": event, **fields})
