#!/usr/bin/env python3
"""snooze entry point."""

import sys

from snooze.config import ConfigError, load_config
from snooze.lifecycle import Lifecycle
from snooze.log import setup_logging
from snooze.server import SnoozeServer


def main(argv=None) -> int:
    lifecycle = Lifecycle()

    try:
        config = load_config(argv)
    except ConfigError as exc:
        print(f"snooze: {exc}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)
    lifecycle.install_signal_handlers()

    server = SnoozeServer(config, lifecycle.shutdown_event, started_at=lifecycle.started_at)
    try:
        server.start()
    except OSError:
        # Already logged under the net subsystem
        return 1

    lifecycle.log_shutdown_requested()
    server.stop()
    lifecycle.log_shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
