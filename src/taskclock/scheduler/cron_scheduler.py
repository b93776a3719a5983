"""Thin wrapper around APScheduler v3 that hands out one timer per job.

Every timer gets its own APScheduler job and its own thread pool executor,
so a slow or hung job can only exhaust its own workers; siblings keep firing.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, EVENT_JOB_MISSED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from taskclock.scheduler.cron import build_trigger

if TYPE_CHECKING:
    from apscheduler.events import JobEvent
    from apscheduler.executors.base import BaseExecutor
    from apscheduler.schedulers.base import BaseScheduler

    from taskclock.config.settings import Settings

logger = logging.getLogger(__name__)


class CronTimer:
    """Handle for a single APScheduler job and its private executor.

    Pausing clears the job's next run time; resuming recomputes it from the
    trigger, so a resumed timer picks up its original schedule.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        job_id: str,
        executor_alias: str | None = None,
        executor: BaseExecutor | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._job_id = job_id
        self._executor_alias = executor_alias
        self._executor = executor

    def start(self) -> None:
        self._scheduler.resume_job(self._job_id)

    def stop(self) -> None:
        self._scheduler.pause_job(self._job_id)

    def cancel(self) -> None:
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            logger.debug("Timer %s already removed", self._job_id)

        if self._executor_alias is None:
            return
        try:
            self._scheduler.remove_executor(self._executor_alias, shutdown=False)
        except KeyError:
            logger.debug("Executor %s already removed", self._executor_alias)
        # In-flight runs finish on their worker threads
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    @property
    def running(self) -> bool:
        return self.next_fire_time is not None

    @property
    def next_fire_time(self) -> datetime | None:
        job = self._scheduler.get_job(self._job_id)
        # Jobs added before the scheduler starts have no next_run_time yet
        return getattr(job, "next_run_time", None) if job else None


class CronScheduler:
    """Manages cron-triggered timers on background APScheduler thread pools.

    ``max_workers`` bounds the concurrent runs of each job, not of the whole
    scheduler.
    """

    def __init__(
        self,
        timezone: str = "UTC",
        max_workers: int = 10,
        overlap: Literal["allow", "skip"] = "allow",
        misfire_grace_time: int = 60,
    ) -> None:
        self._timezone = timezone
        self._max_workers = max_workers
        self._scheduler = BackgroundScheduler(
            timezone=timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1 if overlap == "skip" else max_workers,
                "misfire_grace_time": misfire_grace_time,
            },
        )
        self._scheduler.add_listener(
            self._on_job_event, EVENT_JOB_MISSED | EVENT_JOB_MAX_INSTANCES
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> CronScheduler:
        """Build a scheduler from the ``scheduler_*`` settings."""
        return cls(
            timezone=settings.scheduler_timezone,
            max_workers=settings.scheduler_max_workers,
            overlap=settings.scheduler_overlap,
            misfire_grace_time=settings.scheduler_misfire_grace_seconds,
        )

    def _on_job_event(self, event: JobEvent) -> None:
        job = self._scheduler.get_job(event.job_id)
        name = job.name if job else event.job_id
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.warning("Skipped firing of '%s': previous run still in progress", name)
        else:
            logger.warning("Missed firing of '%s' at %s", name, event.scheduled_run_time)

    def create_timer(
        self,
        name: str,
        cron_expr: str,
        func: Callable[[], None],
    ) -> CronTimer:
        """Schedule ``func`` on a cron schedule and return its running handle.

        Args:
            name: Human-readable timer name (the registry's job name).
            cron_expr: 5- or 6-field cron expression (e.g. "30 2 * * *").
            func: Zero-argument callable run on the timer's own worker pool.

        Raises:
            ValueError: If ``cron_expr`` is invalid.
        """
        trigger = build_trigger(cron_expr, self._timezone)
        job_id = uuid.uuid4().hex
        alias = f"timer-{job_id}"
        executor = ThreadPoolExecutor(self._max_workers)

        self._scheduler.add_executor(executor, alias)
        self._scheduler.add_job(func, trigger, id=job_id, name=name, executor=alias)
        if not self._scheduler.running:
            self.start()
        logger.debug("Scheduled timer '%s' (%s) with cron '%s'", name, job_id, cron_expr)
        return CronTimer(self._scheduler, job_id, executor_alias=alias, executor=executor)

    def start(self) -> None:
        """Start the scheduler."""
        self._scheduler.start()
        logger.info("Scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the scheduler, optionally waiting for in-flight runs."""
        if not self._scheduler.running:
            return
        self._scheduler.shutdown(wait=wait)
        logger.info("Scheduler shut down")

    @property
    def running(self) -> bool:
        """Whether the scheduler is currently running."""
        return self._scheduler.running
