from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from scdtrack.app import (
    backfill_history,
    cumulate_period,
    load_actor_films,
    reconcile_range,
    update_history,
)
from scdtrack.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from scdtrack.domain.reconciliation import BatchSummary

log = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_FATAL = 1
EXIT_PARTIAL = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile yearly actor film snapshots into cumulative and history tables"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    load = subparsers.add_parser("load-films", help="Load an actor-films CSV file")
    load.add_argument("path", type=Path, help="CSV file with actor,actorid,film,year,... columns")

    cumulate = subparsers.add_parser("cumulate", help="Build cumulative rows for one year")
    cumulate.add_argument("--period", type=int, required=True, help="Year to cumulate")

    backfill = subparsers.add_parser("backfill", help="Rebuild the history from scratch")
    backfill.add_argument(
        "--as-of",
        type=int,
        required=True,
        help="Last year included in the rebuilt history",
    )

    update = subparsers.add_parser("update-history", help="Extend the history by one year")
    update.add_argument("--period", type=int, required=True, help="Year to add")

    run = subparsers.add_parser("run", help="Cumulate and historize a range of years")
    run.add_argument("--first", type=int, help="First year (defaults to earliest loaded)")
    run.add_argument("--last", type=int, help="Last year (defaults to latest loaded)")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    for name in ("period", "as_of", "first", "last"):
        value = getattr(args, name, None)
        if value is not None and value < 0:
            raise ValueError(f"--{name.replace('_', '-')} must be non-negative")
    first = getattr(args, "first", None)
    last = getattr(args, "last", None)
    if first is not None and last is not None and first > last:
        raise ValueError("--first must not be after --last")


def _report(summaries: Sequence[BatchSummary]) -> int:
    exit_code = 0
    for summary in summaries:
        for failure in summary.failures:
            log.warning("%s %s failed for %s", summary.operation, summary.period, failure.reason)
        if not summary.ok:
            exit_code = EXIT_PARTIAL
    return exit_code


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "load-films":
        result = load_actor_films(args.path)
        for rejected in result.rejected:
            log.warning("Line %s rejected: %s", rejected.line, rejected.reason)
        return EXIT_PARTIAL if result.rejected else 0
    if args.command == "cumulate":
        return _report([cumulate_period(args.period)])
    if args.command == "backfill":
        return _report([backfill_history(args.as_of)])
    if args.command == "update-history":
        return _report([update_history(args.period)])
    if args.command == "run":
        return _report(reconcile_range(args.first, args.last))
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        exit_code = _dispatch(parsed_args)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(EXIT_FATAL)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run_cli() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run_cli()
