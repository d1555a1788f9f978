"""Constants and default values for the lockfile worker.

Reference timings: a 20 second lock timeout polled every 5 seconds, with
simulated work of up to 15 seconds that hangs for an extra 20 seconds
roughly one time in five.
"""

import re

# ==================== LOCK FILES ====================

LOCK_FILE_PREFIX: str = "lockfile"
DEFAULT_LOCK_TIMEOUT_SECONDS: float = 20.0
FIRST_SEQUENCE_NUMBER: int = 1

# Suffix that makes an entry a lock file at all
LOCK_SUFFIX_PATTERN = re.compile(r"[0-9]+")

# Canonical decimal: "0" or digits without a leading zero
SEQUENCE_PATTERN = re.compile(r"0|[1-9][0-9]*")

# ==================== SCHEDULING ====================

DEFAULT_POLL_INTERVAL_SECONDS: float = 5.0

# ==================== SIMULATED WORK ====================

DEFAULT_MAX_WORK_SECONDS: float = 15.0
DEFAULT_HANG_PROBABILITY: float = 0.2
DEFAULT_HANG_SECONDS: float = 20.0

# ==================== LOGGING ====================

LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT: int = 5
LOG_FILE_NAME: str = "worker.log"
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS: tuple[str, ...] = ("text", "json")

# ==================== CLI EXIT CODES ====================

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_NOT_ACQUIRED: int = 3

# ==================== ENVIRONMENT ====================

# Environment variable -> WorkerConfig field
ENV_VAR_MAPPING: dict[str, str] = {
    "LOCKFILE_WORKER_LOCK_DIR": "lock_dir",
    "LOCKFILE_WORKER_LOCK_TIMEOUT": "timeout_seconds",
    "LOCKFILE_WORKER_INTERVAL": "interval_seconds",
    "LOCKFILE_WORKER_MAX_WORK": "max_work_seconds",
    "LOCKFILE_WORKER_HANG_PROBABILITY": "hang_probability",
    "LOCKFILE_WORKER_HANG_SECONDS": "hang_seconds",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
}
