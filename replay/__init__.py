"""Point-in-time state reconstruction from day-partitioned change logs."""

from replay.query import get_state, partition_path
from replay.resolver import ChangeEvent, FieldObservation, ResolvedState, resolve_state
from replay.timeparse import format_timestamp, parse_timestamp

__all__ = [
    "ChangeEvent",
    "FieldObservation",
    "ResolvedState",
    "format_timestamp",
    "get_state",
    "parse_timestamp",
    "partition_path",
    "resolve_state",
]
