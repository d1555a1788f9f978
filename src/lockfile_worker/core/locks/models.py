"""Value types shared by the lock scanner and coordinator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class LockFile:
    """A lock file observed in (or just created in) the lock directory.

    Attributes:
        path: Full path of the entry
        sequence: Sequence number encoded in the file name
        created_at: Creation instant (the entry's modification time)
    """

    path: Path
    sequence: int
    created_at: datetime

    @property
    def name(self) -> str:
        return self.path.name

    def age_seconds(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds()


@dataclass
class LockHandle:
    """A lock this process currently owns.

    Created by a successful acquire and consumed by exactly one release.
    """

    lock_file: LockFile
    acquired_at: datetime
    released: bool = False

    @property
    def name(self) -> str:
        return self.lock_file.name


class AcquireStatus(Enum):
    """Outcome of a single acquisition attempt."""

    CREATED = "created"  # No lock existed; first lock file created
    TOOK_OVER = "took_over"  # Expired lock replaced and its file removed
    TOOK_OVER_DELETE_FAILED = "took_over_delete_failed"  # Replaced, but old file left behind
    FRESH = "fresh"  # Current lock is still within the timeout
    CREATE_FAILED = "create_failed"  # Lost the create race or hit an I/O error

    @property
    def acquired(self) -> bool:
        return self in (AcquireStatus.CREATED, AcquireStatus.TOOK_OVER, AcquireStatus.TOOK_OVER_DELETE_FAILED)


@dataclass(frozen=True)
class AcquireResult:
    status: AcquireStatus
    handle: LockHandle | None = None
    previous: LockFile | None = None
    previous_age_seconds: float | None = None

    @property
    def acquired(self) -> bool:
        return self.handle is not None


class ReleaseStatus(Enum):
    """Outcome of releasing a held lock."""

    DELETED = "deleted"
    DELETE_FAILED = "delete_failed"
    EXPIRED = "expired"  # Held past the timeout; left in place
    ALREADY_RELEASED = "already_released"


@dataclass(frozen=True)
class ReleaseResult:
    status: ReleaseStatus
    held_seconds: float | None = None

    @property
    def deleted(self) -> bool:
        return self.status == ReleaseStatus.DELETED
