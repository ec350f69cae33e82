"""Error types raised while answering a state query.

Every error is fatal to the query that raised it. The CLI reports the
message on stderr and exits non-zero.
"""

from __future__ import annotations

from typing import Any


class ReplayError(Exception):
    """Base class for all replay errors."""


class InvalidInputError(ReplayError, ValueError):
    """Missing or malformed query arguments."""


class TimeParseError(InvalidInputError):
    """A timestamp matched none of the accepted layouts."""

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        super().__init__(message or f"unable to parse time value: {text!r}")


class SourceIOError(ReplayError):
    """Partition bytes could not be retrieved or decompressed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class NotFoundError(ReplayError):
    """The partition for the requested day does not exist at the source."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"the file {path} was not found")


class ParseError(ReplayError):
    """A line of the event log is not a valid change event."""

    def __init__(self, path: str, line_number: int, message: str) -> None:
        self.path = path
        self.line_number = line_number
        super().__init__(f"line {line_number} of {path}: {message}")


class DataError(ReplayError):
    """The event log is inconsistent or holds nothing for the requested fields."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        preceding: Any = None,
        following: Any = None,
        fields: list[str] | None = None,
    ) -> None:
        self.field = field
        self.preceding = preceding
        self.following = following
        self.fields = fields or []
        super().__init__(message)

    @classmethod
    def mismatch(cls, field: str, preceding: Any, following: Any) -> DataError:
        return cls(
            f'data error, mismatched values on "before" and "after" '
            f"({preceding!r}, {following!r}) data for the field {field}",
            field=field,
            preceding=preceding,
            following=following,
        )

    @classmethod
    def no_data(cls, fields: list[str]) -> DataError:
        return cls(f"no data found for fields {fields}", fields=fields)
