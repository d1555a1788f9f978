"""Pytest configuration and fixtures for lockfile worker tests"""
import logging
import os
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from lockfile_worker.core.constants import ENV_VAR_MAPPING


class FakeClock:
    """Thread-safe controllable clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    """Fake clock starting at a fixed instant"""
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def lock_dir(tmp_path):
    """Create an isolated lock directory"""
    directory = tmp_path / "locks"
    directory.mkdir()
    return directory


@pytest.fixture
def make_lock():
    """Factory that places a lock file with a given creation time"""

    def _make(directory: Path, name: str, created_at: datetime) -> Path:
        path = directory / name
        path.touch()
        epoch = created_at.timestamp()
        os.utime(path, (epoch, epoch))
        return path

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all worker-related environment variables"""
    for env_name in ENV_VAR_MAPPING:
        monkeypatch.delenv(env_name, raising=False)
    yield


@pytest.fixture
def restore_root_logger():
    """Restore root handlers and level after setup_logging replaces them"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
