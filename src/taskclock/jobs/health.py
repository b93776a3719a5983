"""Periodic health-check job — logs process uptime and thread count."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from taskclock.scheduler.registry import Job

if TYPE_CHECKING:
    from taskclock.config.settings import Settings

logger = logging.getLogger(__name__)

_STARTED = time.monotonic()


def log_health() -> None:
    uptime = int(time.monotonic() - _STARTED)
    hours, rest = divmod(uptime, 3600)
    logger.info(
        "Health check - Uptime: %dh %dm | Threads: %d",
        hours,
        rest // 60,
        threading.active_count(),
    )


def make_health_check_job(settings: Settings) -> Job:
    return Job(
        name="health-check",
        schedule=settings.health_job_cron,
        action=log_health,
        description="Logs process health metrics",
    )
