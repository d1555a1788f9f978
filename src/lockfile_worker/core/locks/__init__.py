"""Locking subsystem for cross-process coordination.

Instances sharing a directory serialize their work through numbered lock
files: the newest file is the lock, expired files are taken over by
creating the next number and removing the old one.
"""

from lockfile_worker.core.locks.coordinator import LockCoordinator
from lockfile_worker.core.locks.models import (
    AcquireResult,
    AcquireStatus,
    LockFile,
    LockHandle,
    ReleaseResult,
    ReleaseStatus,
)
from lockfile_worker.core.locks.scanner import (
    LockDirectoryScanner,
    create_if_absent,
    delete_lock_file,
    is_lock_file_name,
    lock_file_name,
    parse_sequence,
)

__all__ = [
    "AcquireResult",
    "AcquireStatus",
    "LockCoordinator",
    "LockDirectoryScanner",
    "LockFile",
    "LockHandle",
    "ReleaseResult",
    "ReleaseStatus",
    "create_if_absent",
    "delete_lock_file",
    "is_lock_file_name",
    "lock_file_name",
    "parse_sequence",
]
