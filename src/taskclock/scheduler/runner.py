"""Serve-mode host — registers the job catalogue and runs until signalled."""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import TYPE_CHECKING

from taskclock.jobs import load_jobs
from taskclock.scheduler.cron_scheduler import CronScheduler
from taskclock.scheduler.health_check import start_health_check
from taskclock.scheduler.registry import JobRegistry

if TYPE_CHECKING:
    from taskclock.config.settings import Settings

logger = logging.getLogger(__name__)


def register_jobs(registry: JobRegistry, settings: Settings) -> list[str]:
    """Register the enabled catalogue jobs.

    Returns:
        Names of the jobs that failed to register.
    """
    failed = []
    for job in load_jobs(settings):
        if not registry.register(job):
            logger.warning("Skipping job '%s': registration failed", job.name)
            failed.append(job.name)
    return failed


def serve(settings: Settings) -> int:
    """Start the registry with the configured jobs and block until SIGINT/SIGTERM.

    This is the entry point for ``python -m taskclock serve``. Starts a
    health-check HTTP server for PaaS keep-alive, registers the enabled jobs,
    and on shutdown stops every job before the scheduler itself.

    Returns:
        0 after a clean shutdown, 1 if ``scheduler_strict`` is set and a job
        failed to register.
    """
    scheduler = CronScheduler.from_settings(settings)
    registry = JobRegistry(scheduler)

    failed = register_jobs(registry, settings)
    if failed and settings.scheduler_strict:
        logger.error("Aborting: %d job(s) failed to register: %s", len(failed), failed)
        registry.stop_all()
        scheduler.shutdown(wait=False)
        return 1

    server = None
    if settings.health_check_enabled:
        server, _ = start_health_check(
            port=settings.health_check_port,
            path=settings.health_check_path,
            registry=registry,
        )

    logger.info("Serve mode active — jobs: %s", ", ".join(registry.get_job_names()) or "none")

    # Block until signal
    stop_event = threading.Event()

    def _handle_signal(signum: int, frame: object) -> None:
        logger.info("Received signal %d, shutting down...", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        while not stop_event.is_set():
            time.sleep(1)
    finally:
        registry.stop_all()
        scheduler.shutdown()
        if server:
            server.shutdown()
        logger.info("Serve mode stopped")

    return 0
