"""Tests for the periodic driver and simulated work"""
import logging
import random
import threading
from datetime import timedelta
from unittest.mock import Mock

import pytest

from lockfile_worker.core.config import WorkConfig, WorkerConfig
from lockfile_worker.core.exceptions import FilesystemError
from lockfile_worker.core.locks import AcquireStatus, LockCoordinator, ReleaseStatus
from lockfile_worker.worker import LockedWorker, SimulatedWork


def _names(directory):
    return sorted(p.name for p in directory.iterdir())


class TestSimulatedWork:
    """Test the stand-in unit of work"""

    def test_sleeps_within_bounds_without_hang(self):
        sleeps = []
        rng = Mock(spec=random.Random)
        rng.random.side_effect = [0.5, 0.9]
        work = SimulatedWork(10.0, 0.2, 20.0, rng=rng, sleep=sleeps.append)

        duration = work()

        assert sleeps == [5.0]
        assert duration == 5.0

    def test_hang_adds_extra_sleep(self):
        sleeps = []
        rng = Mock(spec=random.Random)
        rng.random.side_effect = [0.1, 0.05]
        work = SimulatedWork(10.0, 0.2, 20.0, rng=rng, sleep=sleeps.append)

        duration = work()

        assert sleeps == [pytest.approx(1.0), 20.0]
        assert duration == pytest.approx(21.0)

    def test_zero_probability_never_hangs(self):
        sleeps = []
        work = SimulatedWork(1.0, 0.0, 20.0, rng=random.Random(42), sleep=sleeps.append)

        for _ in range(50):
            work()

        assert len(sleeps) == 50
        assert all(0.0 <= s < 1.0 for s in sleeps)

    def test_from_config(self):
        work = SimulatedWork.from_config(WorkConfig(max_work_seconds=3.0, hang_probability=0.5, hang_seconds=7.0))
        assert work.max_work_seconds == 3.0
        assert work.hang_probability == 0.5
        assert work.hang_seconds == 7.0


class TestRunCycle:
    """Test a single acquire -> work -> release tick"""

    def test_runs_work_and_releases(self, lock_dir, clock):
        work = Mock()
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), work, 5.0)

        result = worker.run_cycle()

        work.assert_called_once_with()
        assert result.acquired is True
        assert result.acquire.status == AcquireStatus.CREATED
        assert result.release.status == ReleaseStatus.DELETED
        assert _names(lock_dir) == []

    def test_skips_work_when_lock_is_fresh(self, lock_dir, clock, make_lock):
        make_lock(lock_dir, "lockfile7", clock() - timedelta(seconds=3))
        work = Mock()
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), work, 5.0)

        result = worker.run_cycle()

        work.assert_not_called()
        assert result.acquired is False
        assert result.release is None
        assert _names(lock_dir) == ["lockfile7"]

    def test_work_longer_than_timeout_leaves_lock(self, lock_dir, clock):
        def _slow_work():
            clock.advance(25)

        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), _slow_work, 5.0)

        result = worker.run_cycle()

        assert result.release.status == ReleaseStatus.EXPIRED
        assert _names(lock_dir) == ["lockfile1"]

    def test_work_failure_still_releases(self, lock_dir, clock):
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), Mock(side_effect=ValueError("boom")), 5.0)

        with pytest.raises(ValueError, match="boom"):
            worker.run_cycle()

        assert _names(lock_dir) == []

    def test_records_work_duration(self, lock_dir, clock):
        ticks = iter([100.0, 102.5])
        worker = LockedWorker(
            LockCoordinator(lock_dir, 20.0, clock=clock), Mock(), 5.0, monotonic=lambda: next(ticks)
        )

        assert worker.run_cycle().work_seconds == pytest.approx(2.5)

    def test_filesystem_error_propagates(self, tmp_path, clock):
        worker = LockedWorker(LockCoordinator(tmp_path / "missing", 20.0, clock=clock), Mock(), 5.0)

        with pytest.raises(FilesystemError):
            worker.run_cycle()


class TestRunForever:
    """Test the fixed-delay loop"""

    def test_stops_after_max_cycles(self, lock_dir, clock):
        work = Mock()
        stop = Mock(spec=threading.Event)
        stop.is_set.return_value = False
        stop.wait.return_value = False
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), work, 5.0)

        cycles = worker.run_forever(stop_event=stop, max_cycles=3)

        assert cycles == 3
        assert work.call_count == 3
        # Fixed delay between cycles, none after the last one.
        assert stop.wait.call_count == 2
        stop.wait.assert_called_with(5.0)

    def test_stop_event_ends_loop(self, lock_dir, clock):
        stop = threading.Event()
        work = Mock(side_effect=stop.set)
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), work, 60.0)

        assert worker.run_forever(stop_event=stop) == 1

    def test_lock_errors_do_not_stop_loop(self, tmp_path, clock, caplog):
        stop = Mock(spec=threading.Event)
        stop.is_set.return_value = False
        stop.wait.return_value = False
        worker = LockedWorker(LockCoordinator(tmp_path / "missing", 20.0, clock=clock), Mock(), 5.0)

        with caplog.at_level(logging.ERROR):
            cycles = worker.run_forever(stop_event=stop, max_cycles=2)

        assert cycles == 2
        aborted = [r for r in caplog.records if getattr(r, "lock_event", None) == "cycle_aborted"]
        assert len(aborted) == 2

    def test_work_errors_are_logged_and_loop_continues(self, lock_dir, clock, caplog):
        stop = Mock(spec=threading.Event)
        stop.is_set.return_value = False
        stop.wait.return_value = False
        work = Mock(side_effect=[RuntimeError("first"), None])
        worker = LockedWorker(LockCoordinator(lock_dir, 20.0, clock=clock), work, 5.0)

        with caplog.at_level(logging.ERROR):
            cycles = worker.run_forever(stop_event=stop, max_cycles=2)

        assert cycles == 2
        assert work.call_count == 2
        assert any(r.exc_info for r in caplog.records)
        assert _names(lock_dir) == []


class TestFromConfig:
    """Test building a worker from configuration"""

    def test_wires_coordinator_and_simulated_work(self, lock_dir):
        config = WorkerConfig()
        config.lock.lock_dir = lock_dir
        config.lock.timeout_seconds = 30.0
        config.work.interval_seconds = 2.0
        config.instance = "node-1"

        worker = LockedWorker.from_config(config)

        assert worker.coordinator.lock_dir == lock_dir
        assert worker.coordinator.timeout_seconds == 30.0
        assert worker.interval_seconds == 2.0
        assert isinstance(worker.work, SimulatedWork)
        assert worker.coordinator.logger.extra["instance"] == "node-1"

    def test_custom_work_is_used(self, lock_dir):
        config = WorkerConfig()
        config.lock.lock_dir = lock_dir
        work = Mock()

        worker = LockedWorker.from_config(config, work=work)
        worker.run_cycle()

        work.assert_called_once_with()
