"""Custom exceptions for the lockfile worker.

All exception classes carry a short message plus optional details so that
log lines and CLI errors explain what went wrong and where.
"""


class LockWorkerError(Exception):
    """Base exception for all lockfile worker errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(LockWorkerError):
    """Exception raised for invalid worker configuration.

    Examples:
        - Non-positive lock timeout or poll interval
        - Hang probability outside [0, 1]
        - Lock file prefix containing a path separator
    """

    def __init__(self, message: str, field: str | None = None, details: str | None = None):
        self.field = field
        super().__init__(message, details)


class FilesystemError(LockWorkerError):
    """Exception raised when the lock directory cannot be read.

    The caller must not assume the lock is free when this is raised; the
    current cycle is aborted and the next scheduled tick retries.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.path = path
        self.operation = operation
        self.original_error = original_error
        super().__init__(message, details)

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"during {self.operation}")
        if self.path:
            parts.append(self.path)
        if self.details:
            parts.append(self.details)
        return " - ".join(parts)


class MalformedLockNameError(LockWorkerError):
    """Raised when an entry carries the lock prefix but no valid sequence number.

    The directory is in an unexpected state, so the tick must not proceed.
    """

    def __init__(self, name: str, details: str | None = None):
        self.name = name
        super().__init__(f"Malformed lock file name '{name}'", details)
