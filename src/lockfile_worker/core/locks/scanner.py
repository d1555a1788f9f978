"""Lock directory scanning and the filesystem primitives the protocol relies on.

Design principles:
- Every decision is made against a fresh directory listing; nothing is cached.
- Mutual exclusion comes only from exclusive create (``O_CREAT | O_EXCL``).
- Lock files are never modified after creation; hand-off is create-new then
  delete-old.
"""

from __future__ import annotations

import contextlib
import os
from datetime import UTC, datetime
from pathlib import Path

from lockfile_worker.core.constants import LOCK_FILE_PREFIX, LOCK_SUFFIX_PATTERN, SEQUENCE_PATTERN
from lockfile_worker.core.exceptions import FilesystemError, MalformedLockNameError
from lockfile_worker.core.locks.models import LockFile


def lock_file_name(sequence: int, prefix: str = LOCK_FILE_PREFIX) -> str:
    return f"{prefix}{sequence}"


def is_lock_file_name(name: str, prefix: str = LOCK_FILE_PREFIX) -> bool:
    """True if ``name`` is the prefix followed by one or more ASCII digits."""
    return name.startswith(prefix) and LOCK_SUFFIX_PATTERN.fullmatch(name[len(prefix) :]) is not None


def parse_sequence(name: str, prefix: str = LOCK_FILE_PREFIX) -> int:
    """Extract the sequence number from a lock file name.

    Raises:
        MalformedLockNameError: If the name is not a lock file name, or its digits have a leading zero
    """
    if not name.startswith(prefix):
        raise MalformedLockNameError(name, details=f"expected prefix '{prefix}'")
    suffix = name[len(prefix) :]
    if SEQUENCE_PATTERN.fullmatch(suffix) is None:
        raise MalformedLockNameError(name, details="suffix is not a sequence number")
    return int(suffix)


def create_if_absent(path: Path, timestamp: datetime) -> bool:
    """Atomically create an empty file at ``path`` if nothing exists there.

    On success the file's modification time is set to ``timestamp`` so that
    every instance reading the directory sees the same creation instant the
    owner recorded in its handle.

    Returns:
        True if this call created the file, False if it already existed

    Raises:
        OSError: For failures other than the file already existing
    """
    try:
        fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        return False
    try:
        epoch = timestamp.timestamp()
        # Falls back to the filesystem's own creation mtime if stamping fails.
        with contextlib.suppress(OSError):
            os.utime(fd if os.utime in os.supports_fd else str(path), (epoch, epoch))
    finally:
        os.close(fd)
    return True


def delete_lock_file(path: Path) -> bool:
    """Delete a lock file. A file that is already gone counts as deleted."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return True
    except OSError:
        return False


class LockDirectoryScanner:
    """Finds lock files in a directory and picks the latest one.

    Candidates are compared by their numeric sequence number rather than by
    name, so ``lockfile10`` is newer than ``lockfile9``.
    """

    def __init__(self, prefix: str = LOCK_FILE_PREFIX):
        self.prefix = prefix

    def list_lock_files(self, directory: Path) -> list[LockFile]:
        """Return every lock file currently in ``directory`` (unordered).

        Raises:
            FilesystemError: If the directory cannot be listed or an entry cannot be read
            MalformedLockNameError: If a lock file's digits are not canonical (leading zero)
        """
        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            raise FilesystemError(
                "Unable to list lock directory",
                path=str(directory),
                operation="scan",
                details=e.strerror,
                original_error=e,
            ) from e

        lock_files: list[LockFile] = []
        for entry in entries:
            if not is_lock_file_name(entry.name, self.prefix):
                continue
            sequence = parse_sequence(entry.name, self.prefix)
            try:
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                # Removed between listing and stat. Skipping it could make the
                # directory look empty, so report it as expired and let the
                # exclusive create of its successor decide.
                mtime = 0.0
            except OSError as e:
                raise FilesystemError(
                    "Unable to read lock file",
                    path=entry.path,
                    operation="stat",
                    details=e.strerror,
                    original_error=e,
                ) from e
            lock_files.append(
                LockFile(
                    path=Path(entry.path),
                    sequence=sequence,
                    created_at=datetime.fromtimestamp(mtime, UTC),
                )
            )
        return lock_files

    def find_latest(self, directory: Path) -> LockFile | None:
        """Return the lock file with the highest sequence number, or None if there is none."""
        lock_files = self.list_lock_files(directory)
        if not lock_files:
            return None
        return max(lock_files, key=lambda lock_file: lock_file.sequence)
