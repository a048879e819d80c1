"""
Run event history aggregation from CLI.

    python -m scripts.run_aggregation                      # previous week
    python -m scripts.run_aggregation --from 20230102      # weeks from 2023-01-02 to last week
    python -m scripts.run_aggregation --from 2023 --to 2023  # every month of 2023
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from aggregation.dispatcher import UnknownSourceKindError, UnsupportedSourceRoleError
from aggregation.orchestrator import AggregationOrchestrator
from aggregation.period import InvalidPeriodFormatError
from app.logging_utils import configure_logging
from db.session import session_scope


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aggregate dojo event histories.")
    parser.add_argument(
        "--from",
        dest="raw_from",
        default=None,
        help="Window start: YYYY, YYYYMM, YYYYMMDD (or with / or - separators). "
        "Year / year-month selects monthly aggregation. Defaults to the previous week.",
    )
    parser.add_argument(
        "--to",
        dest="raw_to",
        default=None,
        help="Window end, same formats as --from. Defaults to the end of the previous week.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        with session_scope() as db:
            result = AggregationOrchestrator(session=db).run(args.raw_from, args.raw_to)
    except (InvalidPeriodFormatError, UnknownSourceKindError, UnsupportedSourceRoleError) as exc:
        parser.error(str(exc))

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
