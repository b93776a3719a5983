"""Timer protocols — the only view of the timing mechanism the registry gets."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol


class TimerHandle(Protocol):
    """A recurring timer bound to one schedule, owned by one registry entry."""

    def start(self) -> None:
        """Resume firing on the original schedule. No-op if already running."""
        ...

    def stop(self) -> None:
        """Suspend future firings, keeping the timer. No-op if already stopped."""
        ...

    def cancel(self) -> None:
        """Destroy the timer. In-flight invocations are left to finish."""
        ...

    @property
    def running(self) -> bool:
        """Whether the timer will fire again on its schedule."""
        ...

    @property
    def next_fire_time(self) -> datetime | None:
        """Next scheduled firing, or None while stopped."""
        ...


class TimerSource(Protocol):
    """Factory for timer handles (APScheduler in production, fakes in tests).

    Firings must call ``func`` on a thread with no running event loop: the
    registry drives async job actions with ``asyncio.run`` on that thread.
    Firing from inside a loop makes every async job fail with RuntimeError.
    """

    def create_timer(
        self,
        name: str,
        cron_expr: str,
        func: Callable[[], None],
    ) -> TimerHandle:
        """Create a timer that is already running and calls ``func`` on schedule.

        Raises:
            ValueError: If ``cron_expr`` is not a valid cron expression.
        """
        ...
