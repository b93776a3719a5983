"""taskclock — in-process registry of cron-scheduled jobs."""

from taskclock.scheduler.registry import Job, JobRegistry, JobStatus

__all__ = ["Job", "JobRegistry", "JobStatus"]
