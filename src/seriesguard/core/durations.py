"""
Duration parsing and formatting helpers.

Durations use the Prometheus notation (``90d``, ``1h30m``, ``500ms``) both
when reading directive values and when rendering human readable ages in
finding messages.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from seriesguard.core.errors import InvalidDurationError

_DURATION_RE = re.compile(
    r"^(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$"
)

_UNITS: list[tuple[str, timedelta]] = [
    ("y", timedelta(days=365)),
    ("w", timedelta(weeks=1)),
    ("d", timedelta(days=1)),
    ("h", timedelta(hours=1)),
    ("m", timedelta(minutes=1)),
    ("s", timedelta(seconds=1)),
    ("ms", timedelta(milliseconds=1)),
]


def parse_duration(value: str) -> timedelta:
    """Parse a Prometheus duration string like '2h' or '1d12h' to timedelta.

    Raises:
        InvalidDurationError: if the string is empty or not a valid duration
    """
    if value == "":
        raise InvalidDurationError("empty duration string")
    if value == "0":
        return timedelta(0)

    match = _DURATION_RE.match(value)
    if not match or not any(match.groups()):
        raise InvalidDurationError(f'not a valid duration string: "{value}"')

    total = timedelta(0)
    for (_, unit), amount in zip(_UNITS, match.groups()):
        if amount:
            total += unit * int(amount)
    return total


def humanize_duration(duration: timedelta) -> str:
    """Render a timedelta using the largest units first, e.g. '1d2h'."""
    if duration <= timedelta(0):
        return "0s"

    remaining = duration
    parts = []
    for name, unit in _UNITS:
        if remaining >= unit:
            count = remaining // unit
            remaining -= unit * count
            parts.append(f"{count}{name}")
    return "".join(parts) or "0s"


def _round(duration: timedelta, unit: timedelta) -> timedelta:
    # Half away from zero.
    units, rest = divmod(duration, unit)
    if rest * 2 >= unit:
        units += 1
    return unit * units


def since_desc(ts: datetime, now: datetime) -> str:
    """Describe how long ago ``ts`` was, rounded to hours past one day."""
    elapsed = now - ts
    if elapsed > timedelta(hours=24):
        return humanize_duration(_round(elapsed, timedelta(hours=1)))
    return humanize_duration(_round(elapsed, timedelta(minutes=1)))
