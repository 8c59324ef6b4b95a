"""Structured JSON logging on top of the stdlib logging module.

Every record is rendered as one JSON object per line with a fixed prefix:

    {"ts": ..., "level": ..., "subsystem": ..., "exec_time": "0.0000", ...fields}

Structured data is passed through ``extra``:

    subsystem  logical source of the event ("http", "app", "net")
    exec_time  elapsed seconds associated with the event
    fields     dict of event-specific key/value pairs, in output order
"""

import json
import logging
import sys
from datetime import datetime

from snooze.request import RequestDescriptor

LEVELS = {
    "error": logging.ERROR,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

FIXED_FIELDS = ("ts", "level", "subsystem", "exec_time")
DEFAULT_SUBSYSTEM = "app"


def format_exec_time(seconds: float) -> str:
    """Render elapsed seconds with exactly four decimal places."""
    return f"{max(0.0, float(seconds)):.4f}"


def collision_key(taken, key: str) -> str:
    """Return ``header_<key>``, suffixed ``_2``, ``_3``, ... until it is not in *taken*."""
    candidate = f"header_{key}"
    n = 2
    while candidate in taken:
        candidate = f"header_{key}_{n}"
        n += 1
    return candidate


def level_name(levelno: int) -> str:
    if levelno >= logging.WARNING:
        return "error"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class JsonLineFormatter(logging.Formatter):
    """Formats a LogRecord as a single-line JSON object."""

    def formatTime(self, record, datefmt=None):
        ts = datetime.fromtimestamp(record.created).astimezone()
        return ts.isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "level": level_name(record.levelno),
            "subsystem": getattr(record, "subsystem", DEFAULT_SUBSYSTEM),
            "exec_time": format_exec_time(getattr(record, "exec_time", 0.0)),
        }

        fields = getattr(record, "fields", None)
        if fields is None:
            # Plain logger calls carry their text as a message field
            fields = {"msg": record.getMessage()}
        for key, value in fields.items():
            key = str(key)
            if key in payload:
                key = collision_key(payload, key)
            payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(level: str = "info", stream=None) -> logging.Logger:
    """Attach a JSON line handler to the ``snooze`` logger and set its level."""
    root = logging.getLogger("snooze")
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(JsonLineFormatter())
    root.addHandler(handler)
    root.setLevel(LEVELS[level])
    root.propagate = False
    return root


def log_event(logger: logging.Logger, level: int, subsystem: str,
              exec_time: float = 0.0, **fields) -> None:
    """Emit one structured record. *fields* keep their keyword order."""
    logger.log(
        level,
        fields.get("op", subsystem),
        extra={"subsystem": subsystem, "exec_time": exec_time, "fields": fields},
    )


def log_request(logger: logging.Logger, request: RequestDescriptor, elapsed: float) -> None:
    """Emit the per-request http record: method, path, agent, then every other header."""
    fields = {
        "method": request.method,
        "path": request.path,
        "agent": request.user_agent,
    }
    for name, value in request.other_headers.items():
        if name in fields or name in FIXED_FIELDS:
            name = collision_key(fields, name)
        fields[name] = value

    logger.info(
        "%s %s", request.method, request.path,
        extra={"subsystem": "http", "exec_time": elapsed, "fields": fields},
    )
