"""Minimal read-only HTTP endpoint exposing the engine's dashboard payload."""

from __future__ import annotations

import json
import logging
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

DashboardPayload = Dict[str, object]
StateProvider = Callable[[], DashboardPayload]

_ROUTES = {'/api/dashboard', '/api/dashboard/'}


def _make_handler(state_provider: StateProvider) -> type[BaseHTTPRequestHandler]:
    class DashboardHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler contract)
            if self.path not in _ROUTES:
                self.send_error(HTTPStatus.NOT_FOUND)
                return
            try:
                payload = state_provider()
            except Exception:
                logger.exception('Dashboard state provider failed')
                self.send_error(HTTPStatus.SERVICE_UNAVAILABLE)
                return
            body = json.dumps(payload, default=str).encode('utf-8')
            self.send_response(HTTPStatus.OK)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(body)))
            self.send_header('Cache-Control', 'no-store')
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args) -> None:  # noqa: A002 (BaseHTTPRequestHandler signature)
            logger.debug('dashboard api: ' + format, *args)

    return DashboardHandler


def serve_dashboard_api(
    state_provider: StateProvider,
    host: str = '127.0.0.1',
    port: int = 8000,
) -> Tuple[ThreadingHTTPServer, threading.Thread]:
    """Serve ``GET /api/dashboard`` from a daemon thread."""
    server = ThreadingHTTPServer((host, port), _make_handler(state_provider))
    thread = threading.Thread(target=server.serve_forever, name='dashboard-api', daemon=True)
    thread.start()
    return server, thread


__all__ = ['DashboardPayload', 'StateProvider', 'serve_dashboard_api']
