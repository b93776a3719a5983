"""Tests for the host plumbing — health check endpoint and serve runner."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from unittest.mock import ANY, MagicMock, patch

import pytest

from taskclock.scheduler.health_check import start_health_check
from taskclock.scheduler.registry import Job, JobRegistry

MODULE = "taskclock.scheduler.runner"


# ── Health Check ────────────────────────────────────────────────────────


class TestHealthCheck:
    def test_responds_200_on_health_path(self) -> None:
        server, thread = start_health_check(port=0, path="/health")
        try:
            port = server.server_address[1]
            resp = urllib.request.urlopen(f"http://127.0.0.1:{port}/health")
            assert resp.status == 200
            assert resp.read() == b"ok"
        finally:
            server.shutdown()

    def test_responds_404_on_unknown_path(self) -> None:
        server, thread = start_health_check(port=0, path="/health")
        try:
            port = server.server_address[1]
            with pytest.raises(urllib.error.HTTPError) as exc_info:
                urllib.request.urlopen(f"http://127.0.0.1:{port}/unknown")
            assert exc_info.value.code == 404
        finally:
            server.shutdown()

    def test_custom_health_path(self) -> None:
        server, thread = start_health_check(port=0, path="/ping")
        try:
            port = server.server_address[1]
            resp = urllib.request.urlopen(f"http://127.0.0.1:{port}/ping")
            assert resp.status == 200
        finally:
            server.shutdown()

    def test_jobs_listing(self, registry: JobRegistry) -> None:
        registry.register(Job("a", "* * * * *", MagicMock(), description="first"))
        registry.register(Job("b", "0 * * * *", MagicMock()))
        registry.stop("b")

        server, thread = start_health_check(port=0, registry=registry)
        try:
            port = server.server_address[1]
            resp = urllib.request.urlopen(f"http://127.0.0.1:{port}/jobs")
            assert resp.status == 200
            assert resp.headers["Content-Type"] == "application/json"
            payload = json.loads(resp.read())
        finally:
            server.shutdown()

        by_name = {item["name"]: item for item in payload}
        assert by_name["a"]["running"] is True
        assert by_name["a"]["description"] == "first"
        assert by_name["a"]["next_run_time"] is not None
        assert by_name["b"]["running"] is False
        assert by_name["b"]["next_run_time"] is None

    def test_jobs_path_404_without_registry(self) -> None:
        server, thread = start_health_check(port=0)
        try:
            port = server.server_address[1]
            with pytest.raises(urllib.error.HTTPError) as exc_info:
                urllib.request.urlopen(f"http://127.0.0.1:{port}/jobs")
            assert exc_info.value.code == 404
        finally:
            server.shutdown()


# ── Runner ──────────────────────────────────────────────────────────────


class TestRegisterJobs:
    def test_registers_enabled_jobs(self, registry: JobRegistry, make_settings) -> None:
        from taskclock.scheduler.runner import register_jobs

        settings = make_settings(enabled_jobs=["health-check", "example-job"])
        failed = register_jobs(registry, settings)

        assert failed == []
        assert registry.get_job_names() == ["health-check", "example-job"]

    def test_reports_failed_jobs(self, registry: JobRegistry, make_settings) -> None:
        from taskclock.scheduler.runner import register_jobs

        settings = make_settings(
            enabled_jobs=["health-check", "daily-reminder"],
            daily_reminder_cron="not a cron",
        )
        failed = register_jobs(registry, settings)

        assert failed == ["daily-reminder"]
        assert registry.get_job_names() == ["health-check"]


class TestServe:
    @patch(f"{MODULE}.start_health_check")
    @patch(f"{MODULE}.CronScheduler")
    def test_serve_registers_jobs_and_shuts_down(
        self,
        mock_sched_cls: MagicMock,
        mock_hc: MagicMock,
        make_settings,
    ) -> None:
        from taskclock.scheduler.runner import serve

        mock_server = MagicMock()
        mock_hc.return_value = (mock_server, MagicMock())
        mock_sched = mock_sched_cls.from_settings.return_value
        handles = []

        def _create_timer(name, cron_expr, func):
            handle = MagicMock()
            handles.append(handle)
            return handle

        mock_sched.create_timer.side_effect = _create_timer

        settings = make_settings(
            enabled_jobs=["health-check", "example-job"],
            health_check_port=10000,
        )

        # Interrupt the wait loop on its first sleep
        with patch(f"{MODULE}.time.sleep", side_effect=KeyboardInterrupt):
            with patch(f"{MODULE}.signal.signal"):
                with pytest.raises(KeyboardInterrupt):
                    serve(settings)

        mock_sched_cls.from_settings.assert_called_once_with(settings)
        assert mock_sched.create_timer.call_count == 2
        mock_hc.assert_called_once_with(port=10000, path="/health", registry=ANY)
        # Shutdown order: every job cancelled, then scheduler, then server
        assert all(h.cancel.called for h in handles)
        mock_sched.shutdown.assert_called_once()
        mock_server.shutdown.assert_called_once()

    @patch(f"{MODULE}.start_health_check")
    @patch(f"{MODULE}.CronScheduler")
    def test_serve_without_health_check(
        self,
        mock_sched_cls: MagicMock,
        mock_hc: MagicMock,
        make_settings,
    ) -> None:
        from taskclock.scheduler.runner import serve

        settings = make_settings(health_check_enabled=False)

        with patch(f"{MODULE}.time.sleep", side_effect=KeyboardInterrupt):
            with patch(f"{MODULE}.signal.signal"):
                with pytest.raises(KeyboardInterrupt):
                    serve(settings)

        mock_hc.assert_not_called()

    @patch(f"{MODULE}.start_health_check")
    @patch(f"{MODULE}.CronScheduler")
    def test_serve_returns_zero_on_signal(
        self,
        mock_sched_cls: MagicMock,
        mock_hc: MagicMock,
        make_settings,
    ) -> None:
        from taskclock.scheduler.runner import serve

        mock_hc.return_value = (MagicMock(), MagicMock())
        handlers = {}

        def _capture(signum, handler):
            handlers[signum] = handler

        def _deliver_sigterm(_seconds):
            for signum, handler in handlers.items():
                handler(signum, None)

        with patch(f"{MODULE}.signal.signal", side_effect=_capture):
            with patch(f"{MODULE}.time.sleep", side_effect=_deliver_sigterm):
                assert serve(make_settings()) == 0

        assert handlers
        mock_sched_cls.from_settings.return_value.shutdown.assert_called_once()

    @patch(f"{MODULE}.start_health_check")
    @patch(f"{MODULE}.CronScheduler")
    def test_strict_mode_aborts_on_bad_job(
        self,
        mock_sched_cls: MagicMock,
        mock_hc: MagicMock,
        make_settings,
    ) -> None:
        from taskclock.scheduler.runner import serve

        settings = make_settings(
            enabled_jobs=["daily-reminder"],
            daily_reminder_cron="bogus",
            scheduler_strict=True,
        )

        assert serve(settings) == 1
        mock_hc.assert_not_called()
        mock_sched_cls.from_settings.return_value.shutdown.assert_called_once_with(wait=False)
