"""Job registry — named recurring jobs with a running/stopped lifecycle.

The registry is the only component that creates, starts, stops or destroys
timer handles. Expected misuse (duplicate name, bad schedule, unknown name)
is reported through boolean results and log lines, never exceptions.

Every firing goes through :meth:`JobRegistry._invoke`, which contains any
error raised by the job body. A failing job stays registered and keeps
firing; other jobs are unaffected.

Overlap: timers are schedule-driven, not completion-driven. With the default
``allow`` policy a run that outlives its interval overlaps the next firing of
the same job (see ``Settings.scheduler_overlap``).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from taskclock.scheduler.cron import validate_cron
from taskclock.scheduler.cron_scheduler import CronScheduler

if TYPE_CHECKING:
    from taskclock.scheduler.base import TimerHandle, TimerSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Job:
    """A named recurring unit of work.

    ``action`` takes no arguments and may return an awaitable; coroutines are
    run to completion on the worker thread that fired them.
    """

    name: str
    schedule: str
    action: Callable[[], Any]
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            msg = f"Job name must be a non-empty string, got {self.name!r}"
            raise ValueError(msg)
        if not callable(self.action):
            msg = f"Job action for '{self.name}' must be callable"
            raise TypeError(msg)


@dataclass(frozen=True)
class JobStatus:
    """Read-only snapshot of a registered job."""

    name: str
    schedule: str
    description: str
    running: bool
    next_run_time: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "schedule": self.schedule,
            "description": self.description,
            "running": self.running,
            "next_run_time": (
                self.next_run_time.isoformat() if self.next_run_time else None
            ),
        }


@dataclass
class RegisteredJob:
    job: Job
    handle: TimerHandle


async def _drain(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _run_to_completion(awaitable: Awaitable[Any]) -> None:
    """Drive ``awaitable`` on a fresh event loop in the calling thread.

    Raises:
        RuntimeError: If the calling thread already runs an event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(_drain(awaitable))
        return
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    msg = "async job fired on a thread that is already running an event loop"
    raise RuntimeError(msg)


class JobRegistry:
    """Single source of truth for recurring jobs.

    Build one per host process and pass it to whatever needs it. The five
    mutating operations share a lock, so the registry may be driven from
    several threads.
    """

    def __init__(self, timers: TimerSource | None = None) -> None:
        self._timers: TimerSource = timers if timers is not None else CronScheduler()
        self._jobs: dict[str, RegisteredJob] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, job: Job) -> bool:
        """Register ``job`` and start firing it on its schedule.

        Returns:
            True on success; False if the name is taken or the schedule is
            invalid.
        """
        with self._lock:
            if job.name in self._jobs:
                logger.error("Job with name '%s' is already registered", job.name)
                return False

            error = validate_cron(job.schedule)
            if error is not None:
                logger.error(
                    "Invalid cron expression '%s' for job '%s': %s",
                    job.schedule,
                    job.name,
                    error,
                )
                return False

            handle = self._timers.create_timer(
                job.name, job.schedule, lambda: self._invoke(job)
            )
            self._jobs[job.name] = RegisteredJob(job=job, handle=handle)

        suffix = f" - {job.description}" if job.description else ""
        logger.info("Registered scheduled job: %s (%s)%s", job.name, job.schedule, suffix)
        return True

    def unregister(self, name: str) -> bool:
        """Cancel and remove a job. Runs already in flight are left to finish."""
        with self._lock:
            entry = self._jobs.pop(name, None)
            if entry is None:
                logger.error("Job with name '%s' not found", name)
                return False
            entry.handle.cancel()

        logger.info("Unregistered scheduled job: %s", name)
        return True

    def get_job_names(self) -> list[str]:
        """Return all registered job names, running or stopped."""
        with self._lock:
            return list(self._jobs)

    def stop_all(self) -> None:
        """Cancel every timer and clear the registry."""
        with self._lock:
            entries, self._jobs = self._jobs, {}
            for name, entry in entries.items():
                try:
                    entry.handle.cancel()
                except Exception:
                    logger.exception("Error cancelling scheduled job '%s'", name)
                    continue
                logger.info("Stopped scheduled job: %s", name)

    def start(self, name: str) -> bool:
        """Resume a stopped job. Idempotent for running jobs."""
        with self._lock:
            entry = self._jobs.get(name)
            if entry is None:
                logger.error("Job with name '%s' not found", name)
                return False
            entry.handle.start()

        logger.info("Started scheduled job: %s", name)
        return True

    def stop(self, name: str) -> bool:
        """Pause a job without unregistering it. Idempotent."""
        with self._lock:
            entry = self._jobs.get(name)
            if entry is None:
                logger.error("Job with name '%s' not found", name)
                return False
            entry.handle.stop()

        logger.info("Stopped scheduled job: %s", name)
        return True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_running(self, name: str) -> bool:
        with self._lock:
            entry = self._jobs.get(name)
            return entry is not None and entry.handle.running

    def get_jobs(self) -> list[JobStatus]:
        """Return a status snapshot of every registered job."""
        with self._lock:
            entries = list(self._jobs.values())
        return [
            JobStatus(
                name=entry.job.name,
                schedule=entry.job.schedule,
                description=entry.job.description,
                running=entry.handle.running,
                next_run_time=entry.handle.next_fire_time,
            )
            for entry in entries
        ]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    @staticmethod
    def _invoke(job: Job) -> None:
        """Run one firing of ``job``. Never raises."""
        logger.info("Running scheduled job: %s", job.name)
        try:
            result = job.action()
            if inspect.isawaitable(result):
                _run_to_completion(result)
        except Exception:
            logger.exception("Error executing scheduled job '%s'", job.name)
            return
        logger.debug("Finished scheduled job: %s", job.name)
