"""Core module - Foundation components shared by the worker and CLI.

- Version information
- Custom exceptions
- Configuration dataclasses
- Constants and defaults
- Logging setup
"""

from lockfile_worker.core.config import (
    LockConfig,
    LogConfig,
    WorkConfig,
    WorkerConfig,
)
from lockfile_worker.core.exceptions import (
    ConfigurationError,
    FilesystemError,
    LockWorkerError,
    MalformedLockNameError,
)
from lockfile_worker.core.version import __version__

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "LockWorkerError",
    "ConfigurationError",
    "FilesystemError",
    "MalformedLockNameError",
    # Config dataclasses
    "LockConfig",
    "WorkConfig",
    "LogConfig",
    "WorkerConfig",
]
