"""TCP accept loop: serves one connection at a time until shutdown."""

import logging
import socket
import threading
import time

from snooze.config import Config
from snooze.handler import handle_connection
from snooze.log import log_event

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 10
ACCEPT_TIMEOUT = 1.0


class SnoozeServer:
    """Single-threaded HTTP server. Each connection, including its snooze,
    is handled to completion before the next accept, so exec_time is never
    skewed by concurrent work."""

    def __init__(self, config: Config, shutdown_event: threading.Event,
                 started_at: float | None = None, sleep_func=None):
        self._config = config
        self._shutdown = shutdown_event
        self._started_at = started_at if started_at is not None else time.monotonic()
        self._sleep_func = sleep_func
        self._sock = None
        self._server_address = None

    @property
    def server_address(self) -> tuple:
        """Return (host, port) the server is bound to. Useful when port=0."""
        return self._server_address

    def _bind(self) -> socket.socket:
        op = "socket"
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            op = "setsockopt"
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            op = "bind"
            sock.bind((self._config.host, self._config.port))
            op = "listen"
            sock.listen(LISTEN_BACKLOG)
        except OSError as exc:
            log_event(logger, logging.ERROR, "net", self._uptime(), op=op, error=str(exc))
            if sock is not None:
                sock.close()
            raise
        sock.settimeout(ACCEPT_TIMEOUT)
        return sock

    def _uptime(self) -> float:
        return time.monotonic() - self._started_at

    def start(self):
        """Bind, listen, and serve connections serially until shutdown.

        Raises:
            OSError: If the listening socket cannot be set up.
        """
        sock = self._bind()
        self._sock = sock
        self._server_address = sock.getsockname()
        log_event(logger, logging.INFO, "app", self._uptime(),
                  op="startup", port=self._server_address[1])

        while not self._shutdown.is_set():
            try:
                conn, addr = sock.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._shutdown.is_set():
                    break
                log_event(logger, logging.ERROR, "net", self._uptime(), op="accept", error=str(exc))
                continue

            # No per-request timeout; a slow client stalls the accept loop
            conn.settimeout(None)
            try:
                handle_connection(conn, addr, self._config, sleep_func=self._sleep_func)
            except Exception as exc:
                log_event(logger, logging.ERROR, "http", self._uptime(), op="handle", error=str(exc))
                conn.close()

        self._close_listener()

    def _close_listener(self):
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None

    def stop(self):
        """Signal shutdown and close the listen socket."""
        self._shutdown.set()
        self._close_listener()
