"""Example jobs — templates for writing new ones.

A job is a :class:`~taskclock.scheduler.registry.Job` with a unique name, a
cron expression and a zero-argument action. Actions may be plain functions
or ``async def`` coroutines. Add a factory here and list it in
``taskclock.jobs.JOB_FACTORIES``.

Cron format: ``[second] minute hour day month day_of_week``::

    "*/5 * * * *"   every 5 minutes
    "0 * * * *"     every hour at minute 0
    "0 0 * * 0"     every Sunday at midnight
    "0 9 * * 1-5"   every weekday at 9am
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from taskclock.scheduler.registry import Job

if TYPE_CHECKING:
    from taskclock.config.settings import Settings

logger = logging.getLogger(__name__)


def log_timestamp() -> None:
    logger.info("Example job executed at %s", datetime.now(timezone.utc).isoformat())


async def send_daily_reminder() -> None:
    # Replace with a real delivery (chat message, email, ...)
    logger.info(
        "Daily reminder job triggered at %s", datetime.now(timezone.utc).isoformat()
    )


def make_example_job(settings: Settings) -> Job:
    return Job(
        name="example-job",
        schedule=settings.example_job_cron,
        action=log_timestamp,
        description="Example job that logs a timestamp",
    )


def make_daily_reminder_job(settings: Settings) -> Job:
    return Job(
        name="daily-reminder",
        schedule=settings.daily_reminder_cron,
        action=send_daily_reminder,
        description="Sends a daily reminder",
    )
