"""Read change events from a gzip-compressed, newline-delimited JSON partition.

Lines are decompressed and parsed one at a time, so a partition never has to
be held in memory as text. The resulting event stream is lazy, finite and
can only be consumed once.

Record format, one JSON object per line:

    {"changeTime": "2016-01-01T00:30:00.001059",
     "before": {"ambientTemp": 77.0},
     "after": {"ambientTemp": 79.0}}

Only these three keys are recognized; anything else on the record is ignored.
"""

from __future__ import annotations

import gzip
import io
import json
import logging
import zlib
from collections.abc import Iterable, Iterator
from typing import Any

from replay.errors import ParseError, SourceIOError, TimeParseError
from replay.resolver import ChangeEvent
from replay.timeparse import parse_timestamp

logger = logging.getLogger(__name__)


def iter_partition_lines(data: bytes, path: str) -> Iterator[str]:
    """Decompress gzip partition bytes and yield decoded lines.

    Raises:
        SourceIOError: If the bytes are not valid gzip or UTF-8 data.
    """
    try:
        with gzip.GzipFile(fileobj=io.BytesIO(data)) as compressed:
            with io.TextIOWrapper(compressed, encoding="utf-8") as text:
                yield from text
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        raise SourceIOError(
            path, f"error decompressing file ({path}): {e}"
        ) from e


def _as_object(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f'"{key}" must be an object, got {type(value).__name__}')
    return value


def parse_change_event(record: Any) -> ChangeEvent:
    """Build a ChangeEvent from one decoded JSON record.

    Raises:
        ValueError: If the record is not an object or its keys have the
            wrong types.
        TimeParseError: If changeTime is not an accepted timestamp.
    """
    if not isinstance(record, dict):
        raise ValueError(f"expected a JSON object, got {type(record).__name__}")

    change_time = record.get("changeTime")
    if not isinstance(change_time, str):
        raise ValueError('"changeTime" must be a string')

    return ChangeEvent(
        change_time=parse_timestamp(change_time),
        before=_as_object(record.get("before"), "before"),
        after=_as_object(record.get("after"), "after"),
    )


def iter_change_events(lines: Iterable[str], path: str) -> Iterator[ChangeEvent]:
    """Parse change events from lines of newline-delimited JSON.

    Blank lines are skipped. Line numbers in errors are 1-based.

    Args:
        lines: Lines of the partition file.
        path: Partition path, used in error messages.

    Yields:
        One ChangeEvent per non-blank line.

    Raises:
        ParseError: On the first line that is not a valid change event.
    """
    count = 0
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise ParseError(path, line_number, f"invalid JSON: {e}") from e

        try:
            event = parse_change_event(record)
        except TimeParseError as e:
            raise ParseError(
                path, line_number, f"error parsing changeTime: {e}"
            ) from e
        except ValueError as e:
            raise ParseError(path, line_number, str(e)) from e

        count += 1
        yield event

    logger.debug(f"Read {count} events from {path}")


def iter_partition_events(data: bytes, path: str) -> Iterator[ChangeEvent]:
    """Stream change events out of compressed partition bytes."""
    return iter_change_events(iter_partition_lines(data, path), path)
