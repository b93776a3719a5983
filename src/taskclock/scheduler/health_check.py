"""Lightweight HTTP liveness endpoint, plus a read-only view of the registry."""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskclock.scheduler.registry import JobRegistry

logger = logging.getLogger(__name__)

JOBS_PATH = "/jobs"


def _make_handler(
    health_path: str,
    registry: JobRegistry | None,
) -> type[BaseHTTPRequestHandler]:
    """Create a handler class bound to the health path and registry."""

    class _HealthHandler(BaseHTTPRequestHandler):
        """200 on the health path, job listing on /jobs, 404 otherwise."""

        def do_GET(self) -> None:  # noqa: N802 — BaseHTTPRequestHandler convention
            if self.path == health_path:
                self._reply(200, "text/plain", b"ok")
            elif self.path == JOBS_PATH and registry is not None:
                body = json.dumps([status.to_dict() for status in registry.get_jobs()])
                self._reply(200, "application/json", body.encode("utf-8"))
            else:
                self.send_response(404)
                self.end_headers()

        def _reply(self, status: int, content_type: str, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            """Route request lines through our logger instead of stderr."""
            logger.debug("Health check: %s", format % args)

    return _HealthHandler


def start_health_check(
    port: int = 10000,
    path: str = "/health",
    registry: JobRegistry | None = None,
) -> tuple[HTTPServer, threading.Thread]:
    """Start the health-check HTTP server on a daemon thread.

    Args:
        port: Port to listen on (0 picks a free port).
        path: URL path for the liveness endpoint.
        registry: When given, ``GET /jobs`` lists its jobs as JSON.

    Returns:
        Tuple of (server, thread) for shutdown control.
    """
    handler = _make_handler(path, registry)
    server = HTTPServer(("0.0.0.0", port), handler)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    logger.info("Health check listening on port %d at %s", server.server_address[1], path)
    return server, thread
