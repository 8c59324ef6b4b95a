"""Delay extraction: recognizes /snooze/<N> request paths."""

SNOOZE_PREFIX = "/snooze/"

# Larger requests saturate here instead of overflowing time.sleep().
MAX_SNOOZE_SECONDS = 86400

_ASCII_DIGITS = frozenset("0123456789")


def parse_snooze(path: str) -> int | None:
    """Return the requested delay in whole seconds, or None if *path* is not a delay request.

    The path must be exactly the prefix followed by one or more ASCII digits.
    Leading zeros are accepted. Values above MAX_SNOOZE_SECONDS saturate to it.
    """
    if not path.startswith(SNOOZE_PREFIX):
        return None

    digits = path[len(SNOOZE_PREFIX):]
    if not digits or not set(digits) <= _ASCII_DIGITS:
        return None

    significant = digits.lstrip("0")
    if not significant:
        return 0
    if len(significant) > len(str(MAX_SNOOZE_SECONDS)):
        return MAX_SNOOZE_SECONDS
    return min(int(significant), MAX_SNOOZE_SECONDS)
