"""Tests for timestamp normalization."""

from datetime import timedelta, timezone

import pytest

from replay.errors import InvalidInputError, TimeParseError
from replay.timeparse import (
    LAYOUTS,
    format_timestamp,
    match_layout,
    parse_timestamp,
)


class TestLayouts:
    """Each accepted layout parses with the components written in the text."""

    @pytest.mark.parametrize(
        ("text", "layout"),
        [
            ("2016-01-01T03:24:30.001180+05:00", "fraction+offset"),
            ("2016-01-01T03:24:30.001180Z", "fraction+offset"),
            ("2016-01-01T03:24:30.001180", "fraction"),
            ("2016-01-01T03:24:30-07:00", "seconds+offset"),
            ("2016-01-01T03:24:30", "seconds"),
            ("2016-01-01T03:24Z", "minutes+offset"),
            ("2016-01-01T03:24", "minutes"),
        ],
    )
    def test_match_layout(self, text: str, layout: str) -> None:
        assert match_layout(text) == layout

    def test_layouts_ordered_most_specific_first(self) -> None:
        assert LAYOUTS[0] == "fraction+offset"
        assert LAYOUTS[-1] == "minutes"
        assert len(LAYOUTS) == 6

    def test_fraction_and_offset(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30.001180+05:00")

        assert (dt.year, dt.month, dt.day) == (2016, 1, 1)
        assert (dt.hour, dt.minute, dt.second) == (3, 24, 30)
        assert dt.microsecond == 1180
        assert dt.utcoffset() == timedelta(hours=5)

    def test_fraction_without_offset_is_utc(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30.001180")

        assert dt.microsecond == 1180
        assert dt.tzinfo == timezone.utc

    def test_nanosecond_fraction_truncated(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30.123456789")

        assert dt.microsecond == 123456

    def test_short_fraction(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30.5")

        assert dt.microsecond == 500000

    def test_seconds_with_offset(self) -> None:
        dt = parse_timestamp("2016-01-31T23:59:59-07:00")

        # Date components stay in the written offset
        assert (dt.year, dt.month, dt.day) == (2016, 1, 31)
        assert dt.utcoffset() == timedelta(hours=-7)

    def test_minutes_only_fills_zeros(self) -> None:
        dt = parse_timestamp("2016-01-01T03:00")

        assert (dt.year, dt.month, dt.day, dt.hour, dt.minute) == (2016, 1, 1, 3, 0)
        assert dt.second == 0
        assert dt.microsecond == 0
        assert dt.tzinfo == timezone.utc

    def test_minutes_with_offset(self) -> None:
        dt = parse_timestamp("2016-01-01T03:00+01:30")

        assert dt.utcoffset() == timedelta(hours=1, minutes=30)
        assert dt.second == 0

    def test_far_past_and_future_years(self) -> None:
        assert parse_timestamp("1111-01-01T00:43:00.001064").year == 1111
        assert parse_timestamp("9999-01-01T00:43:00.001064").year == 9999

    def test_naive_and_offset_results_compare(self) -> None:
        utc = parse_timestamp("2016-01-01T03:00")
        later = parse_timestamp("2016-01-01T03:30+00:00")
        same_instant = parse_timestamp("2016-01-01T04:00+01:00")

        assert utc < later
        assert utc == same_instant


class TestParseFailures:
    """Inputs outside the accepted layouts fail."""

    def test_empty(self) -> None:
        with pytest.raises(TimeParseError, match="empty"):
            parse_timestamp("")

    def test_not_a_time(self) -> None:
        with pytest.raises(TimeParseError):
            parse_timestamp("THIS IS NOT A TIME")

    def test_layout_reference_string_is_not_a_time(self) -> None:
        with pytest.raises(TimeParseError):
            parse_timestamp("2006-01-02T15:04:05.999999999Z07:00")

    def test_date_only(self) -> None:
        with pytest.raises(TimeParseError):
            parse_timestamp("2016-01-01")

    def test_out_of_range_month(self) -> None:
        with pytest.raises(TimeParseError) as exc_info:
            parse_timestamp("2016-13-01T00:00")
        assert exc_info.value.text == "2016-13-01T00:00"
        assert match_layout("2016-13-01T00:00") is None

    def test_out_of_range_offset(self) -> None:
        with pytest.raises(TimeParseError):
            parse_timestamp("2016-01-01T00:00+24:00")

    def test_trailing_garbage(self) -> None:
        with pytest.raises(TimeParseError):
            parse_timestamp("2016-01-01T00:00:00 extra")

    def test_non_ascii_digits(self) -> None:
        # Fullwidth and Arabic-Indic digits
        with pytest.raises(TimeParseError):
            parse_timestamp("\uff12\uff10\uff11\uff16-01-01T03:00")
        assert match_layout("2016-01-01T\u0660\u0663:00") is None

    def test_is_invalid_input(self) -> None:
        with pytest.raises(InvalidInputError):
            parse_timestamp("nope")


class TestFormatTimestamp:
    def test_second_precision(self) -> None:
        dt = parse_timestamp("2016-01-01T03:00")
        assert format_timestamp(dt) == "2016-01-01T03:00:00"

    def test_drops_fraction(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30.999999")
        assert format_timestamp(dt) == "2016-01-01T03:24:30"

    def test_keeps_written_offset_clock(self) -> None:
        dt = parse_timestamp("2016-01-01T03:24:30-07:00")
        assert format_timestamp(dt) == "2016-01-01T03:24:30"

    def test_pads_small_years(self) -> None:
        dt = parse_timestamp("0999-01-01T00:00")
        assert format_timestamp(dt) == "0999-01-01T00:00:00"
