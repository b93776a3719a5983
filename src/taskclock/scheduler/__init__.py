"""Scheduler package — job registry, cron timers, health check, serve-mode runner."""

from taskclock.scheduler.cron import build_trigger, parse_cron, validate_cron
from taskclock.scheduler.cron_scheduler import CronScheduler, CronTimer
from taskclock.scheduler.health_check import start_health_check
from taskclock.scheduler.registry import Job, JobRegistry, JobStatus

__all__ = [
    "CronScheduler",
    "CronTimer",
    "Job",
    "JobRegistry",
    "JobStatus",
    "build_trigger",
    "parse_cron",
    "start_health_check",
    "validate_cron",
]
