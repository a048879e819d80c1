"""
Structured logging helpers for aggregation runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure root logging for CLI and scheduler entry points.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_DEFAULT_FORMAT)
