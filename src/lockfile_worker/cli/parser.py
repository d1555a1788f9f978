"""CLI argument parsing."""

from __future__ import annotations

import argparse

from lockfile_worker.core.constants import (
    DEFAULT_HANG_PROBABILITY,
    DEFAULT_HANG_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    DEFAULT_MAX_WORK_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    VALID_LOG_FORMATS,
    VALID_LOG_LEVELS,
)
from lockfile_worker.core.version import __version__

__all__ = ["build_parser", "parse_arguments"]


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{value}'") from e
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lockfile-worker",
        description="Periodic worker coordinated across instances through a shared lock directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the reference settings in the current directory
  lockfile-worker

  # Share a lock directory between several instances
  lockfile-worker --lock-dir /srv/locks --instance worker-a
  lockfile-worker --lock-dir /srv/locks --instance worker-b

  # Single attempt, for cron or scripting
  lockfile-worker --lock-dir /srv/locks --once

  # JSON structured logging with a rotating log file
  lockfile-worker --log-format json --log-dir ./logs

Environment:
  LOCKFILE_WORKER_LOCK_DIR, LOCKFILE_WORKER_LOCK_TIMEOUT, LOCKFILE_WORKER_INTERVAL,
  LOCKFILE_WORKER_MAX_WORK, LOCKFILE_WORKER_HANG_PROBABILITY, LOCKFILE_WORKER_HANG_SECONDS,
  LOG_LEVEL, LOG_FORMAT. A .env file in the working directory is loaded first.

Exit Codes:
  0 - Success (--once: lock acquired and work done)
  1 - Configuration or lock directory error
  3 - Lock not acquired (--once only)
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}", help="Show program version and exit"
    )

    parser.add_argument(
        "--lock-dir",
        type=str,
        default=None,
        help="Directory shared by cooperating instances (default: current directory)",
    )

    parser.add_argument(
        "--lock-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Age after which a lock is considered expired (default: {DEFAULT_LOCK_TIMEOUT_SECONDS:g})",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Delay between the end of one cycle and the next (default: {DEFAULT_POLL_INTERVAL_SECONDS:g})",
    )

    parser.add_argument(
        "--max-work",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Upper bound of the simulated work duration (default: {DEFAULT_MAX_WORK_SECONDS:g})",
    )

    parser.add_argument(
        "--hang-probability",
        type=float,
        default=None,
        metavar="P",
        help=f"Chance that a cycle simulates a hung holder (default: {DEFAULT_HANG_PROBABILITY:g})",
    )

    parser.add_argument(
        "--hang-seconds",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Extra time spent by a simulated hang (default: {DEFAULT_HANG_SECONDS:g})",
    )

    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")

    parser.add_argument(
        "--max-cycles", type=_positive_int, default=None, metavar="N", help="Stop after N cycles"
    )

    parser.add_argument("--instance", type=str, default=None, help="Name attached to this instance's log lines")

    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=list(VALID_LOG_LEVELS),
        help="Logging level (default: INFO, or LOG_LEVEL environment variable)",
    )

    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=list(VALID_LOG_FORMATS),
        help='Log output format: "text" (default) for human-readable, "json" for structured logging',
    )

    parser.add_argument(
        "--log-dir", type=str, default=None, help="Also write a rotating log file to this directory"
    )

    return parser


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments"""
    return build_parser().parse_args(argv)
