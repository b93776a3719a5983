"""CLI entry point — ``python -m taskclock serve|list|validate``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from taskclock.config import get_settings
from taskclock.scheduler.cron import validate_cron

if TYPE_CHECKING:
    from taskclock.scheduler.registry import Job

MAX_DESCRIPTION_LENGTH = 100


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskclock",
        description="taskclock — cron-scheduled background jobs.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Start long-lived scheduler (jobs + health check).")
    sub.add_parser("list", help="List every known job and whether it is enabled.")
    p = sub.add_parser("validate", help="Check job names, schedules and descriptions.")
    p.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Validate the whole catalogue, not just enabled jobs.",
    )

    return parser


def find_problems(jobs: list[Job]) -> list[str]:
    """Return one message per problem found in ``jobs``."""
    problems: list[str] = []
    seen: set[str] = set()
    for job in jobs:
        if job.name in seen:
            problems.append(f"{job.name}: duplicate job name")
        seen.add(job.name)

        error = validate_cron(job.schedule)
        if error is not None:
            problems.append(f"{job.name}: invalid schedule '{job.schedule}' ({error})")

        if not job.description:
            problems.append(f"{job.name}: missing description")
        elif len(job.description) > MAX_DESCRIPTION_LENGTH:
            problems.append(
                f"{job.name}: description too long "
                f"({len(job.description)}/{MAX_DESCRIPTION_LENGTH} chars)"
            )
    return problems


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args and dispatch to serve mode or a catalogue command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "serve":
        from taskclock.scheduler.runner import serve

        return serve(settings)

    from taskclock.jobs import catalogue, load_jobs

    if args.command == "list":
        enabled = set(settings.enabled_jobs)
        for job in catalogue(settings):
            marker = "*" if job.name in enabled else " "
            print(f"{marker} {job.name:<20} {job.schedule:<16} {job.description}")
        return 0

    if args.command == "validate":
        jobs = catalogue(settings) if args.all else load_jobs(settings)
        if not jobs:
            print("No jobs found!")
            return 1
        problems = find_problems(jobs)
        for problem in problems:
            print(problem)
        print(f"Checked {len(jobs)} job(s), {len(problems)} problem(s)")
        return 1 if problems else 0

    return 1  # unreachable with required=True


if __name__ == "__main__":
    sys.exit(main())
