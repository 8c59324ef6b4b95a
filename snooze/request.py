"""HTTP request head parsing: raw bytes to a RequestDescriptor.

Parsing is best-effort: truncated or garbled input degrades to the
defaults below and never raises.
"""

import re
from dataclasses import dataclass, field

from snooze.delay import parse_snooze

HEADER_TERMINATOR = b"\r\n\r\n"

DEFAULT_METHOD = "GET"
DEFAULT_PATH = "/"
DEFAULT_USER_AGENT = "unknown"

MAX_METHOD_LENGTH = 16
MAX_PATH_LENGTH = 2048
MAX_HEADER_NAME_LENGTH = 128
MAX_HEADER_VALUE_LENGTH = 1024
# Content-Length values with more digits are read as 10**18
MAX_CONTENT_LENGTH_DIGITS = 18

# RFC 9110 Section 5.6.2 token characters
TOKEN_PATTERN = re.compile(r"^[!#$%&'*+\-.\^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class RequestDescriptor:
    method: str = DEFAULT_METHOD
    path: str = DEFAULT_PATH
    user_agent: str = DEFAULT_USER_AGENT
    other_headers: dict[str, str] = field(default_factory=dict)
    snooze_seconds: int = 0
    is_snooze: bool = False


def find_headers_end(buf: bytes, start: int = 0) -> int:
    """Return the index just past CRLFCRLF, or 0 if the terminator is not in *buf*.

    *start* lets callers skip bytes already scanned on a previous call.
    """
    idx = buf.find(HEADER_TERMINATOR, max(0, start))
    if idx == -1:
        return 0
    return idx + len(HEADER_TERMINATOR)


def content_length(head: bytes) -> int:
    """Return the Content-Length announced in a request head, or 0.

    The header name matches case-insensitively; a missing or non-numeric
    value counts as no body.
    """
    for line in head.split(b"\r\n")[1:]:
        if not line:
            break
        name, sep, value = line.partition(b":")
        if not sep or name.strip().lower() != b"content-length":
            continue
        value = value.strip()
        if not value.isdigit():
            return 0
        if len(value) > MAX_CONTENT_LENGTH_DIGITS:
            return 10 ** MAX_CONTENT_LENGTH_DIGITS
        return int(value)
    return 0


def _parse_request_line(line: str) -> tuple[str, str]:
    parts = line.split(" ", 2)

    method = parts[0][:MAX_METHOD_LENGTH]
    if not TOKEN_PATTERN.match(method):
        method = DEFAULT_METHOD

    path = DEFAULT_PATH
    if len(parts) > 1 and parts[1]:
        path = parts[1][:MAX_PATH_LENGTH]
    return method, path


def parse_request(raw: bytes) -> RequestDescriptor:
    """Parse a request head (possibly truncated) into a RequestDescriptor."""
    text = raw.decode("utf-8", errors="replace")
    lines = text.split("\r\n")

    method, path = _parse_request_line(lines[0])

    user_agent = None
    other_headers: dict[str, str] = {}
    for line in lines[1:]:
        if line == "":
            break
        if ":" not in line:
            continue

        name, value = line.split(":", 1)
        name = name[:MAX_HEADER_NAME_LENGTH]
        if not name:
            continue
        value = value.lstrip(" \t")[:MAX_HEADER_VALUE_LENGTH]

        if name.lower() == "user-agent":
            if user_agent is None:
                user_agent = value
        elif name in other_headers:
            # Repeated fields combine into one comma-separated value
            combined = f"{other_headers[name]}, {value}"
            other_headers[name] = combined[:MAX_HEADER_VALUE_LENGTH]
        else:
            other_headers[name] = value

    snooze_seconds = parse_snooze(path)
    return RequestDescriptor(
        method=method,
        path=path,
        user_agent=user_agent if user_agent is not None else DEFAULT_USER_AGENT,
        other_headers=other_headers,
        snooze_seconds=snooze_seconds or 0,
        is_snooze=snooze_seconds is not None,
    )
