"""Nearest-state resolution over a stream of field change events.

Each change event records the values of some fields just before and just
after a transition. The value of a field at a target instant is the "after"
value of the latest event strictly before the target, or the "before" value
of the earliest event strictly after it. When both exist they describe the
same steady state and must agree.

The scan is a single pass over the events and keeps at most two
observations per requested field, so events can be streamed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from replay.errors import DataError, InvalidInputError
from replay.timeparse import format_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """One record of the change log."""

    change_time: datetime
    before: dict[str, Any] = field(default_factory=dict)
    after: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldObservation:
    """A candidate value for one field and the instant it was observed."""

    value: Any
    observed_at: datetime


@dataclass(frozen=True)
class ResolvedState:
    """Resolved field values at a query instant."""

    state: dict[str, Any]
    instant: datetime

    @property
    def ts(self) -> str:
        """The query instant at second precision."""
        return format_timestamp(self.instant)

    def to_dict(self) -> dict[str, Any]:
        return {"state": dict(self.state), "ts": self.ts}


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality for JSON values.

    Booleans never equal numbers, integers and floats compare numerically,
    objects compare by keys and values, arrays element-wise.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def _observe_preceding(
    nearest: dict[str, FieldObservation],
    values: dict[str, Any],
    fields: set[str],
    change_time: datetime,
    target: datetime,
) -> None:
    if not change_time <= target:
        return
    for name in fields.intersection(values):
        current = nearest.get(name)
        if current is None:
            logger.debug(f"preceding {name} (was empty) => {values[name]!r}")
        elif change_time > current.observed_at:
            logger.debug(f"preceding {name} (nearer) => {values[name]!r}")
        else:
            continue
        nearest[name] = FieldObservation(value=values[name], observed_at=change_time)


def _observe_following(
    nearest: dict[str, FieldObservation],
    values: dict[str, Any],
    fields: set[str],
    change_time: datetime,
    target: datetime,
) -> None:
    if not change_time > target:
        return
    for name in fields.intersection(values):
        current = nearest.get(name)
        if current is None:
            logger.debug(f"following {name} (was empty) => {values[name]!r}")
        elif change_time < current.observed_at:
            logger.debug(f"following {name} (nearer) => {values[name]!r}")
        else:
            continue
        nearest[name] = FieldObservation(value=values[name], observed_at=change_time)


def resolve_state(
    events: Iterable[ChangeEvent],
    requested_fields: Iterable[str],
    target: datetime,
) -> ResolvedState:
    """Resolve the value of each requested field at the target instant.

    Only strictly nearer events replace a stored observation, so among
    events sharing a change time the first one in the stream wins. An event
    at exactly the target instant counts as preceding: its "after" values
    are the state at that instant.

    Args:
        events: Change events in any order. Consumed once.
        requested_fields: Field names to resolve.
        target: The query instant (timezone-aware).

    Returns:
        ResolvedState holding every field with at least one observation.

    Raises:
        InvalidInputError: If no fields were requested.
        DataError: If preceding and following values of a field disagree,
            or no requested field was observed at all.
    """
    fields = set(requested_fields)
    if not fields:
        raise InvalidInputError("at least one field is required")

    preceding: dict[str, FieldObservation] = {}
    following: dict[str, FieldObservation] = {}

    scanned = 0
    for event in events:
        scanned += 1
        _observe_preceding(preceding, event.after, fields, event.change_time, target)
        _observe_following(following, event.before, fields, event.change_time, target)

    logger.debug(
        f"Scanned {scanned} events: {len(preceding)} preceding, "
        f"{len(following)} following observations"
    )

    state: dict[str, Any] = {}
    for name, observation in preceding.items():
        state[name] = observation.value
    for name, observation in following.items():
        if name in state and not values_equal(state[name], observation.value):
            raise DataError.mismatch(name, state[name], observation.value)
        state.setdefault(name, observation.value)

    if not state:
        raise DataError.no_data(sorted(fields))

    return ResolvedState(state=state, instant=target)
