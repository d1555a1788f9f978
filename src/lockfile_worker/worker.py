"""Periodic driver and simulated unit of work.

Each tick runs acquire -> work -> release once. Ticks are separated by a fixed
delay measured from the end of the previous cycle, so a slow unit of work
pushes the next poll back rather than overlapping it.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from lockfile_worker.core.config import WorkConfig, WorkerConfig
from lockfile_worker.core.exceptions import FilesystemError, MalformedLockNameError
from lockfile_worker.core.locks import AcquireResult, LockCoordinator, ReleaseResult
from lockfile_worker.core.logging import with_log_context

BANNER = "*" * 46


class SimulatedWork:
    """Stand-in payload: sleeps a random duration and occasionally hangs.

    A hang adds ``hang_seconds`` on top of the random duration, which with the
    reference settings pushes the holder past the lock timeout.
    """

    def __init__(
        self,
        max_work_seconds: float,
        hang_probability: float,
        hang_seconds: float,
        *,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.max_work_seconds = max_work_seconds
        self.hang_probability = hang_probability
        self.hang_seconds = hang_seconds
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: WorkConfig, **kwargs) -> SimulatedWork:
        return cls(config.max_work_seconds, config.hang_probability, config.hang_seconds, **kwargs)

    def __call__(self) -> float:
        duration = self.rng.random() * self.max_work_seconds
        self.logger.info("Starting processing! Duration %d milliseconds.", int(duration * 1000))
        self.sleep(duration)
        if self.rng.random() < self.hang_probability:
            self.logger.info("Sleeping %d seconds to simulate a hang situation.", int(self.hang_seconds))
            self.sleep(self.hang_seconds)
            duration += self.hang_seconds
        self.logger.info("Done processing!")
        return duration


@dataclass
class CycleResult:
    """Outcome of one acquire -> work -> release cycle."""

    acquire: AcquireResult
    release: ReleaseResult | None = None
    work_seconds: float = 0.0

    @property
    def acquired(self) -> bool:
        return self.acquire.acquired


class LockedWorker:
    """Runs a unit of work on a fixed delay, only while holding the shared lock."""

    def __init__(
        self,
        coordinator: LockCoordinator,
        work: Callable[[], object],
        interval_seconds: float,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.coordinator = coordinator
        self.work = work
        self.interval_seconds = interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.monotonic = monotonic

    @classmethod
    def from_config(
        cls,
        config: WorkerConfig,
        *,
        work: Callable[[], object] | None = None,
        logger: logging.Logger | None = None,
    ) -> LockedWorker:
        """Build a coordinator, payload and driver from a validated configuration."""
        log = with_log_context(logger or logging.getLogger(__name__), instance=config.instance)
        coordinator = LockCoordinator(
            config.lock.lock_dir,
            config.lock.timeout_seconds,
            prefix=config.lock.prefix,
            logger=log,
        )
        if work is None:
            work = SimulatedWork.from_config(config.work, logger=log)
        return cls(coordinator, work, config.work.interval_seconds, logger=log)

    def run_cycle(self) -> CycleResult:
        """Run a single tick.

        Raises:
            FilesystemError: If the lock directory cannot be read
            MalformedLockNameError: If the lock directory is in an unexpected state
        """
        self.logger.info(BANNER)
        acquire_result = self.coordinator.acquire_result()
        handle = acquire_result.handle
        if handle is None:
            self.logger.info("Unable to acquire lock. Going back to sleep...")
            return CycleResult(acquire=acquire_result)

        self.logger.info("Lock acquired.", extra={"lock_file": handle.name})
        started = self.monotonic()
        try:
            self.work()
        finally:
            work_seconds = self.monotonic() - started
            release_result = self.coordinator.release_result(handle)
        self.logger.info(BANNER)
        return CycleResult(acquire=acquire_result, release=release_result, work_seconds=work_seconds)

    def run_forever(
        self,
        stop_event: threading.Event | None = None,
        max_cycles: int | None = None,
    ) -> int:
        """Run cycles until ``stop_event`` is set or ``max_cycles`` have run.

        Lock directory errors and work failures abort only the current cycle;
        the next tick tries again.

        Returns:
            Number of cycles run
        """
        stop = stop_event or threading.Event()
        cycles = 0
        while not stop.is_set():
            try:
                self.run_cycle()
            except (FilesystemError, MalformedLockNameError) as e:
                self.logger.error("Lock cycle aborted: %s", e, extra={"lock_event": "cycle_aborted"})
            except Exception:
                self.logger.exception("Unit of work failed; lock handling completed")
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            if stop.wait(self.interval_seconds):
                break
        return cycles
