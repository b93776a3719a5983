"""Shared fixtures — a manually fired timer source for registry tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timezone

import pytest

from taskclock.config import Settings, get_settings
from taskclock.scheduler.registry import JobRegistry


class FakeTimer:
    """Timer that only fires when a test calls :meth:`fire`."""

    def __init__(self, name: str, cron_expr: str, func: Callable[[], None]) -> None:
        self.name = name
        self.cron_expr = cron_expr
        self.func = func
        self.running = True
        self.cancelled = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        self.running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    def cancel(self) -> None:
        self.cancelled = True
        self.running = False

    @property
    def next_fire_time(self) -> datetime | None:
        if not self.running:
            return None
        return datetime(2026, 1, 1, tzinfo=timezone.utc)

    def fire(self) -> None:
        """Simulate one scheduled firing, as the scheduler's worker would."""
        if self.running:
            self.func()


class FakeTimerSource:
    def __init__(self) -> None:
        self.created: list[FakeTimer] = []

    def create_timer(
        self,
        name: str,
        cron_expr: str,
        func: Callable[[], None],
    ) -> FakeTimer:
        timer = FakeTimer(name, cron_expr, func)
        self.created.append(timer)
        return timer

    def latest(self, name: str) -> FakeTimer:
        """Most recently created timer for ``name``."""
        return [t for t in self.created if t.name == name][-1]


@pytest.fixture()
def timers() -> FakeTimerSource:
    return FakeTimerSource()


@pytest.fixture()
def registry(timers: FakeTimerSource) -> Iterator[JobRegistry]:
    reg = JobRegistry(timers)
    yield reg
    reg.stop_all()


def make_settings(**overrides: object) -> Settings:
    """Create a Settings instance with test defaults (no .env leakage)."""
    get_settings.cache_clear()
    defaults: dict = {"log_level": "DEBUG", "health_check_port": 0}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture(name="make_settings")
def make_settings_fixture() -> Callable[..., Settings]:
    return make_settings
