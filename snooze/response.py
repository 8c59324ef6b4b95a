"""HTTP/1.1 response writer with graceful connection teardown."""

import logging
import socket

from snooze.log import log_event

logger = logging.getLogger(__name__)

HTTP_VERSION = "HTTP/1.1"
SERVER_NAME = "snooze"
CONTENT_TYPE = "text/html; charset=utf-8"
DRAIN_CHUNK_SIZE = 256


def build_response_head(content_length: int) -> bytes:
    """Status line and headers for a 200 response, terminated by the blank line."""
    head = (
        f"{HTTP_VERSION} 200 OK\r\n"
        f"Server: {SERVER_NAME}\r\n"
        f"Content-Type: {CONTENT_TYPE}\r\n"
        f"Content-Length: {content_length}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return head.encode("ascii")


def send_all(conn: socket.socket, data: bytes) -> None:
    """Write every byte of *data*, continuing after partial writes.

    Raises:
        ConnectionError: If the peer stops accepting data before all bytes are sent.
        OSError: On any other non-recoverable socket error.
    """
    view = memoryview(data)
    while view:
        try:
            sent = conn.send(view)
        except InterruptedError:
            continue
        if sent == 0:
            raise ConnectionError("Connection closed before all data sent")
        view = view[sent:]


def graceful_close(conn: socket.socket) -> None:
    """Half-close, drain unread input, then close.

    Closing with unread bytes queued makes some stacks send RST, which
    clients report as a content-length mismatch even when the body arrived.
    """
    try:
        conn.shutdown(socket.SHUT_WR)
    except OSError:
        pass

    try:
        conn.setblocking(False)
        while True:
            try:
                chunk = conn.recv(DRAIN_CHUNK_SIZE)
            except InterruptedError:
                continue
            except OSError:
                # BlockingIOError included: nothing more queued right now
                break
            if not chunk:
                break
    except OSError:
        pass
    finally:
        conn.close()


def send_http_response(conn: socket.socket, body: str | bytes) -> bool:
    """Send a complete 200 response and close the connection.

    Content-Length is the byte length of *body* as transmitted. Returns True
    if the full response was written, False if the send was cut short.
    """
    payload = body.encode("utf-8", "surrogateescape") if isinstance(body, str) else body
    try:
        send_all(conn, build_response_head(len(payload)))
        send_all(conn, payload)
        return True
    except OSError as exc:
        log_event(logger, logging.DEBUG, "net", op="send", error=str(exc))
        return False
    finally:
        graceful_close(conn)
