"""Scheduler abstraction for deferred callback invocation.

LoopScheduler: hands jobs to the running asyncio loop (production)
SimScheduler: deterministic FIFO queue drained explicitly (tests, sync code)

Observers never run on the stack that settled or chained a Deferred;
every invocation goes through one of these.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable

from .config import SchedulerConfig
from .enums import SchedulerKind
from .errors import SchedulerError

logger = logging.getLogger(__name__)

Job = Callable[[], None]


class LoopScheduler:
    """Schedules jobs with ``call_soon`` on an asyncio event loop.

    Without an explicit loop, the loop running at scheduling time is used.
    ``call_soon`` is FIFO, so jobs keep their scheduling order.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, job: Job) -> None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise SchedulerError(
                    "No running event loop; pass an explicit scheduler "
                    "(e.g. SimScheduler) when using Deferred outside asyncio."
                ) from exc
        loop.call_soon(job)


class SimScheduler:
    """Simulated task queue for deterministic tests.

    Jobs accumulate until ``run_until_idle`` (or ``step``) drains them.
    Jobs scheduled while draining are appended and run in the same drain.
    """

    def __init__(self) -> None:
        self._jobs: deque[Job] = deque()
        self._jobs_run: int = 0

    def schedule(self, job: Job) -> None:
        self._jobs.append(job)

    @property
    def pending(self) -> int:
        """Number of jobs waiting to run."""
        return len(self._jobs)

    @property
    def jobs_run(self) -> int:
        return self._jobs_run

    def step(self) -> bool:
        """Run one job. Returns False if the queue was empty."""
        if not self._jobs:
            return False
        job = self._jobs.popleft()
        self._jobs_run += 1
        job()
        return True

    def run_until_idle(self, max_jobs: int | None = None) -> int:
        """Run jobs FIFO until the queue is empty.

        Args:
            max_jobs: Optional safety cap; raises SchedulerError when hit.

        Returns:
            Number of jobs executed.
        """
        ran = 0
        while self._jobs:
            if max_jobs is not None and ran >= max_jobs:
                raise SchedulerError(
                    f"SimScheduler did not go idle after {max_jobs} jobs"
                )
            self.step()
            ran += 1
        if ran:
            logger.debug("SimScheduler drained %d jobs", ran)
        return ran


DEFAULT_SCHEDULER = LoopScheduler()


def create_scheduler(
    kind: SchedulerKind = SchedulerKind.LOOP,
    loop: asyncio.AbstractEventLoop | None = None,
) -> LoopScheduler | SimScheduler:
    """Create a scheduler for the given kind.

    - LOOP: LoopScheduler (bound to ``loop`` if given, else the running loop)
    - SIM: SimScheduler (no event loop, drained by the caller)
    """
    if kind == SchedulerKind.SIM:
        return SimScheduler()
    return LoopScheduler(loop)


def create_scheduler_from_config(
    config: SchedulerConfig,
    loop: asyncio.AbstractEventLoop | None = None,
) -> LoopScheduler | SimScheduler:
    """Create the scheduler selected by ``Settings.scheduler``."""
    return create_scheduler(config.kind, loop)
