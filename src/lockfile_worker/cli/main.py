"""Command-line entry point."""

from __future__ import annotations

import sys

from lockfile_worker.core.config import WorkerConfig
from lockfile_worker.core.constants import EXIT_ERROR, EXIT_NOT_ACQUIRED, EXIT_OK
from lockfile_worker.core.exceptions import ConfigurationError, FilesystemError, MalformedLockNameError
from lockfile_worker.core.logging import setup_logging
from lockfile_worker.cli.parser import parse_arguments
from lockfile_worker.worker import LockedWorker


def _print_error(msg: str) -> None:
    print(f"ERROR: {msg}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script"""
    args = parse_arguments(argv)

    try:
        config = WorkerConfig.from_args(args)
        config.validate()
    except ConfigurationError as e:
        _print_error(str(e))
        return EXIT_ERROR

    try:
        config.lock.lock_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        _print_error(f"Cannot create lock directory '{config.lock.lock_dir}': {e}")
        return EXIT_ERROR

    logger = setup_logging(
        config.log.level,
        config.log.format,
        config.log.log_dir,
        max_bytes=config.log.file_max_bytes,
        backup_count=config.log.file_backup_count,
    )
    logger.info(
        "Lock directory %s, timeout %.1fs, interval %.1fs",
        config.lock.lock_dir.resolve(),
        config.lock.timeout_seconds,
        config.work.interval_seconds,
    )
    worker = LockedWorker.from_config(config, logger=logger)

    if args.once:
        try:
            result = worker.run_cycle()
        except (FilesystemError, MalformedLockNameError) as e:
            logger.error("Lock cycle aborted: %s", e)
            return EXIT_ERROR
        return EXIT_OK if result.acquired else EXIT_NOT_ACQUIRED

    try:
        worker.run_forever(max_cycles=args.max_cycles)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
