"""Static job catalogue — the jobs a host registers at startup.

The registry keeps no state across restarts; this catalogue, filtered by
``Settings.enabled_jobs``, is the source it is rebuilt from.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from taskclock.jobs.example import make_daily_reminder_job, make_example_job
from taskclock.jobs.health import make_health_check_job

if TYPE_CHECKING:
    from taskclock.config.settings import Settings
    from taskclock.scheduler.registry import Job

logger = logging.getLogger(__name__)

JOB_FACTORIES: tuple[Callable[[Settings], Job], ...] = (
    make_health_check_job,
    make_example_job,
    make_daily_reminder_job,
)


def catalogue(settings: Settings) -> list[Job]:
    """Build every known job, enabled or not."""
    return [factory(settings) for factory in JOB_FACTORIES]


def load_jobs(settings: Settings, names: Iterable[str] | None = None) -> list[Job]:
    """Return the catalogue jobs selected by ``names`` (default: enabled_jobs).

    Unknown names are logged and ignored. Order follows the catalogue.
    """
    wanted = set(settings.enabled_jobs if names is None else names)
    jobs = [job for job in catalogue(settings) if job.name in wanted]

    unknown = wanted - {job.name for job in jobs}
    for name in sorted(unknown):
        logger.warning("Unknown job '%s' in enabled jobs, ignoring", name)

    return jobs


__all__ = ["JOB_FACTORIES", "catalogue", "load_jobs"]
