"""Lock coordinator: acquisition, stale takeover and release.

The coordinator makes a single attempt per call. Contended creates are not
retried here; the periodic driver simply calls again on its next tick.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from lockfile_worker.core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, FIRST_SEQUENCE_NUMBER, LOCK_FILE_PREFIX
from lockfile_worker.core.locks.models import (
    AcquireResult,
    AcquireStatus,
    Clock,
    LockFile,
    LockHandle,
    ReleaseResult,
    ReleaseStatus,
    utcnow,
)
from lockfile_worker.core.locks.scanner import (
    LockDirectoryScanner,
    create_if_absent,
    delete_lock_file,
    lock_file_name,
)
from lockfile_worker.core.logging import with_log_context


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


class LockCoordinator:
    """Acquire/release state machine over a shared lock directory.

    Args:
        lock_dir: Directory shared by all cooperating instances
        timeout_seconds: Age at which a lock is considered expired
        prefix: Lock file name prefix
        clock: Source of "now"; must agree with the clock other instances use
        scanner: Directory scanner (defaults to one using ``prefix``)
        logger: Logger for decision-point reporting
        instance: Optional name attached to every log record
    """

    def __init__(
        self,
        lock_dir: Path,
        timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        *,
        prefix: str = LOCK_FILE_PREFIX,
        clock: Clock = utcnow,
        scanner: LockDirectoryScanner | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        instance: str | None = None,
    ):
        self.lock_dir = Path(lock_dir)
        self.timeout_seconds = timeout_seconds
        self.prefix = prefix
        self.clock = clock
        self.scanner = scanner or LockDirectoryScanner(prefix)
        self.logger = with_log_context(logger or logging.getLogger(__name__), instance=instance)

    def acquire(self) -> LockHandle | None:
        """Try to acquire the lock once. Returns a handle, or None if not acquired."""
        return self.acquire_result().handle

    def acquire_result(self) -> AcquireResult:
        """Try to acquire the lock once and report how the attempt ended.

        Raises:
            FilesystemError: If the lock directory cannot be read
            MalformedLockNameError: If the directory holds an unparseable lock file
        """
        self.logger.info("Trying to acquire lock.")
        latest = self.scanner.find_latest(self.lock_dir)

        if latest is None:
            self.logger.info("Lock file does not exist. Trying to create.", extra={"lock_event": "absent"})
            handle = self._try_create(FIRST_SEQUENCE_NUMBER)
            if handle is None:
                return AcquireResult(status=AcquireStatus.CREATE_FAILED)
            return AcquireResult(status=AcquireStatus.CREATED, handle=handle)

        age = latest.age_seconds(self.clock())
        self.logger.info(
            'Lock file "%s" exists. Created %d milliseconds ago.',
            latest.name,
            _ms(age),
            extra={"lock_file": latest.name, "elapsed_ms": _ms(age)},
        )
        if age < self.timeout_seconds:
            self.logger.info(
                'Lock file "%s" is still valid.',
                latest.name,
                extra={"lock_event": "fresh", "lock_file": latest.name, "elapsed_ms": _ms(age)},
            )
            return AcquireResult(status=AcquireStatus.FRESH, previous=latest, previous_age_seconds=age)

        self.logger.info(
            'Lock file "%s" has expired!',
            latest.name,
            extra={"lock_event": "expired", "lock_file": latest.name, "elapsed_ms": _ms(age)},
        )
        return self._take_over(latest, age)

    def _take_over(self, expired: LockFile, age: float) -> AcquireResult:
        handle = self._try_create(expired.sequence + 1)
        if handle is None:
            # Leave the expired lock alone; the next poller will retry.
            return AcquireResult(status=AcquireStatus.CREATE_FAILED, previous=expired, previous_age_seconds=age)

        self.logger.info('Trying to delete lock file "%s".', expired.name)
        if delete_lock_file(expired.path):
            self.logger.info(
                'Lock file "%s" deleted. Lock taken over by "%s".',
                expired.name,
                handle.name,
                extra={"lock_event": "taken_over", "lock_file": handle.name},
            )
            return AcquireResult(
                status=AcquireStatus.TOOK_OVER, handle=handle, previous=expired, previous_age_seconds=age
            )

        self.logger.warning(
            'Unable to delete expired lock file "%s"; continuing with "%s".',
            expired.name,
            handle.name,
            extra={"lock_event": "delete_failed", "lock_file": expired.name},
        )
        return AcquireResult(
            status=AcquireStatus.TOOK_OVER_DELETE_FAILED, handle=handle, previous=expired, previous_age_seconds=age
        )

    def _try_create(self, sequence: int) -> LockHandle | None:
        path = self.lock_dir / lock_file_name(sequence, self.prefix)
        timestamp = self.clock()
        self.logger.info('Trying to create lock file "%s".', path.name)
        try:
            created = create_if_absent(path, timestamp)
        except OSError as e:
            self.logger.warning(
                'Unable to create lock file "%s": %s',
                path.name,
                e,
                extra={"lock_event": "create_failed", "lock_file": path.name},
            )
            return None

        if not created:
            self.logger.warning(
                'Unable to create lock file "%s"; it already exists.',
                path.name,
                extra={"lock_event": "create_failed", "lock_file": path.name},
            )
            return None

        self.logger.info(
            'New lock file "%s" created.', path.name, extra={"lock_event": "created", "lock_file": path.name}
        )
        lock_file = LockFile(path=path, sequence=sequence, created_at=timestamp)
        return LockHandle(lock_file=lock_file, acquired_at=timestamp)

    def release(self, handle: LockHandle) -> bool:
        """Release a held lock. Returns True if the lock file was deleted."""
        return self.release_result(handle).deleted

    def release_result(self, handle: LockHandle) -> ReleaseResult:
        """Release a held lock, deleting it only if it has not expired meanwhile."""
        if handle.released:
            self.logger.debug('Lock "%s" was already released.', handle.name)
            return ReleaseResult(status=ReleaseStatus.ALREADY_RELEASED)

        held = handle.lock_file.age_seconds(self.clock())
        handle.released = True

        if held >= self.timeout_seconds:
            # Another instance may already own the successor; deleting could remove its lock.
            self.logger.warning(
                'Lock for file "%s" has expired! Should not delete!',
                handle.name,
                extra={"lock_event": "held_past_timeout", "lock_file": handle.name, "elapsed_ms": _ms(held)},
            )
            return ReleaseResult(status=ReleaseStatus.EXPIRED, held_seconds=held)

        self.logger.info('Deleting lock file "%s"', handle.name)
        if delete_lock_file(handle.lock_file.path):
            self.logger.info(
                'Lock file "%s" deleted.',
                handle.name,
                extra={"lock_event": "released", "lock_file": handle.name, "elapsed_ms": _ms(held)},
            )
            return ReleaseResult(status=ReleaseStatus.DELETED, held_seconds=held)

        self.logger.warning(
            'Unable to delete lock file "%s".',
            handle.name,
            extra={"lock_event": "delete_failed", "lock_file": handle.name, "elapsed_ms": _ms(held)},
        )
        return ReleaseResult(status=ReleaseStatus.DELETE_FAILED, held_seconds=held)

    @contextmanager
    def held(self) -> Iterator[LockHandle | None]:
        """Acquire for the duration of a ``with`` block; yields None if not acquired."""
        handle = self.acquire()
        try:
            yield handle
        finally:
            if handle is not None:
                self.release(handle)
