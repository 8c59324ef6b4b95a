"""Per-connection handler: receive, parse, snooze, respond, log, close."""

import logging
import socket
import time

from snooze.config import Config
from snooze.log import log_event, log_request
from snooze.request import (
    HEADER_TERMINATOR,
    content_length,
    find_headers_end,
    parse_request,
)
from snooze.response import graceful_close, send_http_response

logger = logging.getLogger(__name__)


def snooze_message(seconds: int) -> str:
    return f"Snoozed for {seconds} seconds!\n"


def receive_request(conn: socket.socket, capacity: int) -> bytes:
    """Read until the end of the request head or until *capacity* bytes are buffered.

    Returns whatever arrived if the peer half-closes early.

    Raises:
        ConnectionError: If the peer closes before sending anything.
        OSError: On receive errors.
    """
    buf = bytearray()
    while len(buf) < capacity:
        try:
            chunk = conn.recv(capacity - len(buf))
        except InterruptedError:
            continue
        if not chunk:
            break

        scanned = len(buf)
        buf += chunk
        if find_headers_end(buf, scanned - len(HEADER_TERMINATOR) + 1):
            break

    if not buf:
        raise ConnectionError("Connection closed before any data received")
    return bytes(buf)


def receive_body(conn: socket.socket, buf: bytearray, headers_end: int, capacity: int) -> None:
    """Extend *buf* in place with the body announced by Content-Length.

    At most *capacity* body bytes are buffered. Bytes that arrived before a
    peer close or a receive error stay in *buf*.

    Raises:
        OSError: On receive errors.
    """
    wanted = min(content_length(bytes(buf[:headers_end])), capacity)
    while len(buf) - headers_end < wanted:
        try:
            chunk = conn.recv(wanted - (len(buf) - headers_end))
        except InterruptedError:
            continue
        if not chunk:
            return
        buf += chunk


def _peer_name(addr) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        return f"{addr[0]}:{addr[1]}"
    return "unknown"


def handle_connection(conn: socket.socket, addr, config: Config,
                      sleep_func=None, time_func=None) -> None:
    """Process one connection end to end. Never raises for socket errors."""
    sleep_func = sleep_func or time.sleep
    time_func = time_func or time.monotonic
    started = time_func()

    try:
        raw = receive_request(conn, config.buffer_size)
    except OSError as exc:
        log_event(logger, logging.DEBUG, "net", time_func() - started,
                  op="recv", peer=_peer_name(addr), error=str(exc))
        graceful_close(conn)
        return

    headers_end = find_headers_end(raw)
    if headers_end:
        buf = bytearray(raw)
        try:
            receive_body(conn, buf, headers_end, config.buffer_size)
        except OSError as exc:
            log_event(logger, logging.DEBUG, "net", time_func() - started,
                      op="recv_body", peer=_peer_name(addr), error=str(exc))
        raw = bytes(buf)

    log_event(logger, logging.DEBUG, "http", time_func() - started,
              op="request_dump", peer=_peer_name(addr), bytes=len(raw),
              raw=raw.decode("utf-8", errors="replace"))

    request = parse_request(raw[:headers_end] if headers_end else raw)

    if request.is_snooze:
        if request.snooze_seconds > 0:
            sleep_func(request.snooze_seconds)
        body = snooze_message(request.snooze_seconds)
    else:
        body = config.message

    # Closes the connection whether or not the send completed
    send_http_response(conn, body)

    log_request(logger, request, time_func() - started)
