"""Timestamp normalization for change logs and query targets.

Accepts a fixed, ordered set of ISO-8601-like layouts, from most to least
specific, and returns the first successful parse:

    1. 2016-01-01T03:24:30.001180+05:00   fraction + offset
    2. 2016-01-01T03:24:30.001180         fraction
    3. 2016-01-01T03:24:30Z               seconds + offset
    4. 2016-01-01T03:24:30                seconds
    5. 2016-01-01T03:24-07:00             minutes + offset
    6. 2016-01-01T03:24                   minutes

Inputs without an offset are taken as UTC, so every returned datetime is
timezone-aware and can be compared with any other. Inputs with an offset
keep it, which means the date components of the result are exactly the ones
written in the text. That matters for partition lookup, which is keyed by
the calendar day of the target.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from replay.errors import TimeParseError

_DATE = r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
_MINUTES = r"T(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2})"
_SECONDS = r":(?P<second>[0-9]{2})"
_FRACTION = r"\.(?P<fraction>[0-9]{1,9})"
_OFFSET = r"(?P<offset>Z|[+-][0-9]{2}:[0-9]{2})"

# (name, pattern), ordered from most to least specific
_LAYOUT_PATTERNS: list[tuple[str, str]] = [
    ("fraction+offset", _DATE + _MINUTES + _SECONDS + _FRACTION + _OFFSET),
    ("fraction", _DATE + _MINUTES + _SECONDS + _FRACTION),
    ("seconds+offset", _DATE + _MINUTES + _SECONDS + _OFFSET),
    ("seconds", _DATE + _MINUTES + _SECONDS),
    ("minutes+offset", _DATE + _MINUTES + _OFFSET),
    ("minutes", _DATE + _MINUTES),
]

_LAYOUTS: list[tuple[str, re.Pattern[str]]] = [
    (name, re.compile(pattern)) for name, pattern in _LAYOUT_PATTERNS
]

LAYOUTS: tuple[str, ...] = tuple(name for name, _ in _LAYOUTS)


def _parse_offset(offset: str | None) -> timezone:
    if offset is None or offset == "Z":
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = offset[1:].split(":")
    if int(minutes) >= 60:
        raise ValueError(f"invalid offset minutes in {offset!r}")
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if delta >= timedelta(hours=24):
        raise ValueError(f"invalid offset {offset!r}")
    if not delta:
        return timezone.utc
    return timezone(sign * delta)


def _build(match: re.Match[str]) -> datetime:
    """Build an aware datetime from a layout match.

    Raises:
        ValueError: If a component is out of range (e.g. month 13).
    """
    parts = match.groupdict()
    fraction = parts.get("fraction") or ""
    # Fractions are truncated to microseconds
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return datetime(
        int(parts["year"]),
        int(parts["month"]),
        int(parts["day"]),
        int(parts["hour"]),
        int(parts["minute"]),
        int(parts.get("second") or 0),
        microsecond,
        tzinfo=_parse_offset(parts.get("offset")),
    )


def match_layout(text: str) -> str | None:
    """Return the name of the first layout that parses text, or None."""
    for name, pattern in _LAYOUTS:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        try:
            _build(match)
        except ValueError:
            continue
        return name
    return None


def parse_timestamp(text: str) -> datetime:
    """Parse text into a timezone-aware datetime.

    Tries each accepted layout in order and returns the first successful
    parse. Components missing from less specific layouts are zero.

    Args:
        text: Timestamp string, e.g. "2016-01-01T03:00".

    Returns:
        The parsed, timezone-aware datetime.

    Raises:
        TimeParseError: If text is empty or matches none of the layouts.
    """
    if not text:
        raise TimeParseError(text, "the dateTime argument was empty")

    last_error: ValueError | None = None
    for _name, pattern in _LAYOUTS:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        try:
            return _build(match)
        except ValueError as e:
            last_error = e

    if last_error is not None:
        raise TimeParseError(
            text, f"unable to parse time value {text!r}: {last_error}"
        ) from last_error
    raise TimeParseError(
        text,
        f"unable to parse time value {text!r}: expected one of the layouts "
        f"{', '.join(LAYOUTS)}",
    )


def format_timestamp(instant: datetime) -> str:
    """Render an instant at second precision, e.g. "2016-01-01T03:00:00"."""
    # strftime does not zero-pad years below 1000 on every platform
    return (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"
    )
