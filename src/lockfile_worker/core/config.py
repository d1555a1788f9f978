"""Configuration dataclasses for the lockfile worker.

These dataclasses centralize all configuration options for type safety
and easy testing. They can be created from environment variables (with an
optional ``.env`` file), from command-line arguments, or used directly in code.
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from lockfile_worker.core.constants import (
    DEFAULT_HANG_PROBABILITY,
    DEFAULT_HANG_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    DEFAULT_MAX_WORK_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    ENV_VAR_MAPPING,
    LOCK_FILE_PREFIX,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    VALID_LOG_FORMATS,
)
from lockfile_worker.core.exceptions import ConfigurationError


@dataclass
class LockConfig:
    """Configuration for the lock directory protocol.

    Attributes:
        lock_dir: Directory shared by all cooperating instances (default: ".")
        timeout_seconds: Age after which a lock is considered expired (default: 20.0)
        prefix: File name prefix for lock files (default: "lockfile")
    """

    lock_dir: Path = field(default_factory=lambda: Path("."))
    timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    prefix: str = LOCK_FILE_PREFIX


@dataclass
class WorkConfig:
    """Configuration for the periodic driver and the simulated unit of work.

    Attributes:
        interval_seconds: Fixed delay between the end of one cycle and the next (default: 5.0)
        max_work_seconds: Upper bound of the random work duration (default: 15.0)
        hang_probability: Chance that a cycle simulates a hung holder (default: 0.2)
        hang_seconds: Extra time spent when hanging (default: 20.0)
    """

    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_work_seconds: float = DEFAULT_MAX_WORK_SECONDS
    hang_probability: float = DEFAULT_HANG_PROBABILITY
    hang_seconds: float = DEFAULT_HANG_SECONDS


@dataclass
class LogConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level string (default: "INFO")
        format: "text" or "json" (default: "text")
        log_dir: Directory for the rotating log file; console only when None
        file_max_bytes: Maximum size per log file (default: 10MB)
        file_backup_count: Number of backup log files (default: 5)
    """

    level: str = "INFO"
    format: str = "text"
    log_dir: Path | None = None
    file_max_bytes: int = LOG_FILE_MAX_BYTES
    file_backup_count: int = LOG_FILE_BACKUP_COUNT


def _parse_float(env_name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{env_name} must be a number", field=ENV_VAR_MAPPING.get(env_name), details=f"got '{raw}'"
        ) from e


def load_env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """Collect WorkerConfig field overrides from environment variables.

    Empty or whitespace-only values are ignored.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}
    for env_name, field_name in ENV_VAR_MAPPING.items():
        raw = env.get(env_name)
        if raw is None or not raw.strip():
            continue
        value = raw.strip()
        if field_name == "lock_dir":
            overrides[field_name] = Path(value)
        elif field_name in ("log_level", "log_format"):
            overrides[field_name] = value
        else:
            overrides[field_name] = _parse_float(env_name, value)
    return overrides


@dataclass
class WorkerConfig:
    """Master configuration for a worker instance.

    Attributes:
        lock: Lock protocol configuration
        work: Scheduling and simulated work configuration
        log: Logging configuration
        instance: Name used to tag this instance's log lines
    """

    lock: LockConfig = field(default_factory=LockConfig)
    work: WorkConfig = field(default_factory=WorkConfig)
    log: LogConfig = field(default_factory=LogConfig)
    instance: str | None = None

    def apply(self, overrides: Mapping[str, object]) -> WorkerConfig:
        """Apply flat field overrides (as produced by env or CLI parsing) in place."""
        for name, value in overrides.items():
            if value is None:
                continue
            if name == "lock_dir":
                self.lock.lock_dir = Path(value)
            elif name == "timeout_seconds":
                self.lock.timeout_seconds = float(value)
            elif name == "prefix":
                self.lock.prefix = str(value)
            elif name in ("interval_seconds", "max_work_seconds", "hang_probability", "hang_seconds"):
                setattr(self.work, name, float(value))
            elif name == "log_level":
                self.log.level = str(value)
            elif name == "log_format":
                self.log.format = str(value).lower()
            elif name == "log_dir":
                self.log.log_dir = Path(value)
            elif name == "instance":
                self.instance = str(value)
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, load_dotenv_file: bool = True) -> WorkerConfig:
        """Create configuration from environment variables.

        A ``.env`` file in the current directory is loaded first when present;
        variables already set in the environment take precedence.
        """
        if load_dotenv_file and environ is None:
            dotenv_path = find_dotenv(usecwd=True)
            if dotenv_path:
                load_dotenv(dotenv_path, override=False)
        return cls().apply(load_env_overrides(environ))

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ: Mapping[str, str] | None = None) -> WorkerConfig:
        """Create configuration from parsed CLI arguments layered over the environment."""
        config = cls.from_env(environ)
        config.apply(
            {
                "lock_dir": getattr(args, "lock_dir", None),
                "timeout_seconds": getattr(args, "lock_timeout", None),
                "interval_seconds": getattr(args, "interval", None),
                "max_work_seconds": getattr(args, "max_work", None),
                "hang_probability": getattr(args, "hang_probability", None),
                "hang_seconds": getattr(args, "hang_seconds", None),
                "log_level": getattr(args, "log_level", None),
                "log_format": getattr(args, "log_format", None),
                "log_dir": getattr(args, "log_dir", None),
                "instance": getattr(args, "instance", None),
            }
        )
        return config

    def validate(self) -> None:
        """Raise ConfigurationError if any value is out of range."""
        if self.lock.timeout_seconds <= 0:
            raise ConfigurationError("Lock timeout must be positive", field="timeout_seconds")
        if not self.lock.prefix:
            raise ConfigurationError("Lock file prefix must not be empty", field="prefix")
        if "/" in self.lock.prefix or os.sep in self.lock.prefix:
            raise ConfigurationError(
                "Lock file prefix must not contain a path separator", field="prefix", details=self.lock.prefix
            )
        if self.work.interval_seconds <= 0:
            raise ConfigurationError("Poll interval must be positive", field="interval_seconds")
        if self.work.max_work_seconds < 0:
            raise ConfigurationError("Maximum work duration must not be negative", field="max_work_seconds")
        if self.work.hang_seconds < 0:
            raise ConfigurationError("Hang duration must not be negative", field="hang_seconds")
        if not 0.0 <= self.work.hang_probability <= 1.0:
            raise ConfigurationError(
                "Hang probability must be between 0 and 1",
                field="hang_probability",
                details=str(self.work.hang_probability),
            )
        if self.log.format.lower() not in VALID_LOG_FORMATS:
            raise ConfigurationError(
                f"Log format must be one of {', '.join(VALID_LOG_FORMATS)}",
                field="log_format",
                details=self.log.format,
            )
