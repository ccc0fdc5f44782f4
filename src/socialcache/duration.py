"""Duration parsing for TTL and timeout settings."""

import re

from socialcache.types import Duration

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*(ms|s|m|h)?\s*$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse a duration to milliseconds.

    Integers are taken as milliseconds. Strings may carry a unit suffix
    (``"30s"``, ``"500ms"``); a bare digit string is milliseconds too, so
    environment values like ``SOCIALCACHE_TTL=30000`` work.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Invalid duration: {duration!r}")
        return duration

    match = _DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return int(value) * _UNITS[unit or "ms"]
