"""Point-in-time state queries against a day-partitioned change log.

Partitions live under the data source at {year}/{month}/{day}.jsonl.gz,
e.g. /tmp/ehub_data/2016/01/01.jsonl.gz. A query reads exactly one
partition: the one for the calendar day of the target timestamp.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from replay.config import Settings
from replay.errors import InvalidInputError, NotFoundError, TimeParseError
from replay.reader import iter_partition_events
from replay.resolver import ResolvedState, resolve_state
from replay.sources import PartitionSource, source_for
from replay.timeparse import match_layout, parse_timestamp

logger = logging.getLogger(__name__)

PARTITION_SUFFIX = ".jsonl.gz"


def partition_path(data_source: str, instant: datetime) -> str:
    """Build the partition path holding events for the instant's day.

    Args:
        data_source: Local directory or object storage prefix.
        instant: The query instant. Its own date components are used.

    Returns:
        e.g. "/tmp/ehub_data/2016/01/01.jsonl.gz"
    """
    prefix = data_source.rstrip("/") or data_source
    return (
        f"{prefix}/{instant.year}/{instant.month:02d}/{instant.day:02d}"
        f"{PARTITION_SUFFIX}"
    )


def validate_query(
    fields: Sequence[str], data_source: str | None, date_time: str | None
) -> None:
    """Check the query arguments.

    Raises:
        InvalidInputError: If no field, data source or timestamp is given,
            or a field name is empty.
    """
    if isinstance(fields, str):
        raise InvalidInputError(f"fields must be a list of field names, got {fields!r}")
    if not fields:
        raise InvalidInputError("at least one field is required")
    for name in fields:
        if not isinstance(name, str) or not name:
            raise InvalidInputError(f"field names must be non-empty strings, got {name!r}")
    if not data_source:
        raise InvalidInputError("the 1st argument specifying a `dataSource` is required")
    if not date_time:
        raise InvalidInputError("the 2nd argument specifying a `dateTime` is required")


async def get_state(
    fields: Sequence[str],
    data_source: str,
    date_time: str,
    source: PartitionSource | None = None,
    settings: Settings | None = None,
) -> ResolvedState:
    """Resolve the state of fields at a point in time.

    Args:
        fields: Field names to resolve.
        data_source: Local directory or object storage prefix.
        date_time: Target timestamp in one of the accepted layouts.
        source: Partition source. Chosen from data_source when omitted.
        settings: Settings used to build the source. Defaults to the
            environment settings.

    Returns:
        ResolvedState for the target instant.

    Raises:
        InvalidInputError: If the arguments are missing or the timestamp
            does not parse.
        NotFoundError: If there is no partition for the target day.
        SourceIOError: If the partition cannot be read.
        ParseError: If a line of the partition is malformed.
        DataError: If the log is inconsistent or has no data for the fields.
    """
    validate_query(fields, data_source, date_time)

    try:
        target = parse_timestamp(date_time)
    except TimeParseError as e:
        raise InvalidInputError(f"error parsing dateTime: {e}") from e

    path = partition_path(data_source, target)
    logger.debug(
        f"Resolving {list(fields)} at {target.isoformat()} "
        f"(layout {match_layout(date_time)}) from {path}"
    )

    if source is None:
        if settings is None:
            from replay.config import settings as default_settings

            settings = default_settings
        source = source_for(data_source, settings)

    data = await source.fetch(path)
    if data is None:
        raise NotFoundError(path)

    return resolve_state(iter_partition_events(data, path), fields, target)
