"""
Run the aggregation scheduler in the foreground.
"""

from __future__ import annotations

import logging
import os

from app.logging_utils import configure_logging
from app.scheduler.jobs import build_scheduler

logger = logging.getLogger(__name__)


def main() -> int:
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    scheduler = build_scheduler(blocking=True)
    logger.info("Starting aggregation scheduler")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Aggregation scheduler stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
