"""Process lifecycle: start time, shutdown requests from signals, app events."""

import logging
import signal
import threading
import time

from snooze.log import log_event

logger = logging.getLogger(__name__)


class Lifecycle:
    """Owns the shutdown token shared with the accept loop.

    The signal handler only records the first request and sets the event;
    logging happens later on the main loop's side.
    """

    def __init__(self, time_func=None):
        self._time_func = time_func or time.monotonic
        self.started_at = self._time_func()
        self.shutdown_event = threading.Event()
        self.requested_at = None
        self.signum = None
        self._requested_logged = False
        self._shutdown_logged = False

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self.request_shutdown)
        signal.signal(signal.SIGTERM, self.request_shutdown)

    def request_shutdown(self, signum=None, frame=None):
        """Signal handler: remember when shutdown was first requested."""
        if self.requested_at is None:
            self.requested_at = self._time_func()
            self.signum = signum
        self.shutdown_event.set()

    @property
    def keep_running(self) -> bool:
        return not self.shutdown_event.is_set()

    def uptime(self) -> float:
        return self._time_func() - self.started_at

    def log_shutdown_requested(self):
        if self._requested_logged:
            return
        self._requested_logged = True

        requested_at = self.requested_at
        if requested_at is None:
            requested_at = self._time_func()
            self.requested_at = requested_at

        signame = None
        if self.signum is not None:
            try:
                signame = signal.Signals(self.signum).name
            except ValueError:
                signame = str(self.signum)
        log_event(logger, logging.INFO, "app", requested_at - self.started_at,
                  op="shutdown_requested", signal=signame)

    def log_shutdown(self):
        """Final event. exec_time is the cleanup time since the request was observed."""
        if self._shutdown_logged:
            return
        self._shutdown_logged = True

        requested_at = self.requested_at if self.requested_at is not None else self._time_func()
        log_event(logger, logging.INFO, "app", self._time_func() - requested_at,
                  op="shutdown")
