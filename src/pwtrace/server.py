"""Static HTTP server for previewing a generated trace report.

The offline Trace Viewer fetches the archive over HTTP, so opening
index.html from ``file://`` is not enough; this serves the report directory
instead. Only GET and HEAD are allowed, ``/`` maps to index.html and
directories without an index.html are 404 rather than listed.
"""
from __future__ import annotations

import http.server
import logging
import threading
from functools import partial
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD")


class ReportRequestHandler(http.server.SimpleHTTPRequestHandler):
    """Serve files from a report directory with no caching."""

    extensions_map = {
        **http.server.SimpleHTTPRequestHandler.extensions_map,
        ".html": "text/html; charset=utf-8",
        ".css": "text/css; charset=utf-8",
        ".js": "application/javascript; charset=utf-8",
        ".mjs": "application/javascript; charset=utf-8",
        ".json": "application/json; charset=utf-8",
        ".map": "application/json",
        ".wasm": "application/wasm",
        ".zip": "application/zip",
        ".txt": "text/plain; charset=utf-8",
    }

    def list_directory(self, path):
        self.send_error(404, "Not Found")
        return None

    def end_headers(self) -> None:
        self.send_header("Cache-Control", "no-cache")
        super().end_headers()

    def log_message(self, format, *args) -> None:
        logger.info("%s - %s", self.address_string(), format % args)

    def __getattr__(self, name: str):
        # handle_one_request looks up do_<METHOD>; only GET and HEAD are defined
        if name.startswith("do_"):
            return self._method_not_allowed
        raise AttributeError(name)

    def _method_not_allowed(self) -> None:
        # Any request body is left unread, so the connection cannot be reused
        self.close_connection = True
        self.send_response(405)
        self.send_header("Allow", ", ".join(ALLOWED_METHODS))
        self.send_header("Content-Length", "0")
        self.send_header("Connection", "close")
        self.end_headers()


def make_handler(root: Union[str, Path]):
    """Return a handler class bound to serve files from root."""
    return partial(ReportRequestHandler, directory=str(Path(root).resolve()))


def create_server(
    root: Union[str, Path],
    port: int = 8080,
    host: str = "",
) -> http.server.ThreadingHTTPServer:
    """Bind (but do not start) a server for root. Port 0 picks a free port."""
    root = Path(root)
    if not root.exists():
        logger.warning("Serve directory does not exist: %s", root.resolve())
    return http.server.ThreadingHTTPServer((host, port), make_handler(root))


def start_server(
    root: Union[str, Path],
    port: int = 8080,
    host: str = "",
) -> http.server.ThreadingHTTPServer:
    """Start serving root on a daemon thread and return the server."""
    server = create_server(root, port=port, host=host)
    thread = threading.Thread(target=server.serve_forever, name="pwtrace-server", daemon=True)
    thread.start()
    logger.info("Serving %s on port %d", Path(root).resolve(), server.server_address[1])
    return server


def stop_server(server: http.server.ThreadingHTTPServer) -> None:
    """Stop a running server and release its socket."""
    server.shutdown()
    server.server_close()
