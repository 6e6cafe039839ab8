"""Tests for metrics module."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta, timezone

import pytest

from pick_dashboard.metrics import (
    MS_PER_HOUR,
    MS_PER_MINUTE,
    InvalidTimestampError,
    elapsed_ms,
    format_duration,
    format_duration_ms,
    format_rate,
    parse_timestamp,
    picking_rate,
    picking_rate_from_duration,
    round_rate,
)

START = "2024-01-01T09:00:00Z"


class TestParseTimestamp:
    """Tests for ISO 8601 parsing."""

    def test_z_suffix(self) -> None:
        """'Z' is read as UTC."""
        assert parse_timestamp(START) == datetime(2024, 1, 1, 9, tzinfo=UTC)

    def test_offset(self) -> None:
        """Explicit offsets are honored."""
        parsed = parse_timestamp("2024-01-01T18:00:00+09:00")
        assert parsed == datetime(2024, 1, 1, 9, tzinfo=UTC)
        assert parsed.utcoffset() == timedelta(hours=9)

    def test_naive_is_utc(self) -> None:
        """Naive timestamps are interpreted as UTC."""
        assert parse_timestamp("2024-01-01T09:00:00") == datetime(2024, 1, 1, 9, tzinfo=UTC)

    def test_absent(self) -> None:
        """None and empty mean 'no timestamp'."""
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_datetime_passthrough(self) -> None:
        """Aware datetimes are returned unchanged."""
        value = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=9)))
        assert parse_timestamp(value) is value

    def test_invalid(self) -> None:
        """Malformed strings raise InvalidTimestampError."""
        with pytest.raises(InvalidTimestampError):
            parse_timestamp("not a time")


class TestElapsed:
    """Tests for elapsed_ms()."""

    def test_ninety_minutes(self) -> None:
        """09:00 to 10:30 is 5,400,000 ms."""
        assert elapsed_ms(START, "2024-01-01T10:30:00Z") == 5_400_000

    def test_across_offsets(self) -> None:
        """Mixed offsets compare on absolute time."""
        assert elapsed_ms(START, "2024-01-01T19:00:00+09:00") == MS_PER_HOUR

    def test_missing_end(self) -> None:
        """Open orders have zero elapsed time."""
        assert elapsed_ms(START, None) == 0

    def test_end_before_start_clamped(self) -> None:
        """Negative durations are clamped to zero."""
        assert elapsed_ms("2024-01-01T10:00:00Z", START) == 0

    def test_malformed_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Unparseable timestamp degrades to zero and is logged.

        Business context:
        One corrupt row must not take down a whole day's report, but
        the data problem should still be visible in the logs.

        Arrangement:
        Capture WARNING logs from pick_dashboard.metrics.

        Action:
        Compute elapsed time with a malformed end.

        Assertion Strategy:
        Result is 0 and a warning names the bad value.
        """
        with caplog.at_level(logging.WARNING, logger="pick_dashboard.metrics"):
            assert elapsed_ms(START, "garbage") == 0
        assert "garbage" in caplog.text


class TestPickingRate:
    """Tests for items-per-hour calculations."""

    def test_rate(self) -> None:
        """5 items in 90 minutes is 3.33 items/h."""
        rate = picking_rate(5, START, "2024-01-01T10:30:00Z")
        assert rate == pytest.approx(10 / 3)
        assert format_rate(rate) == "3.3"

    def test_zero_duration(self) -> None:
        """Zero elapsed time yields 0.0, not infinity."""
        assert picking_rate(5, START, START) == 0.0
        assert picking_rate(0, START, START) == 0.0

    def test_zero_items(self) -> None:
        """No items over a positive duration is a zero rate."""
        assert picking_rate(0, START, "2024-01-01T10:00:00Z") == 0.0

    def test_from_duration(self) -> None:
        """Rate from pre-summed milliseconds."""
        assert picking_rate_from_duration(6, MS_PER_HOUR) == 6.0
        assert picking_rate_from_duration(6, 0) == 0.0
        assert picking_rate_from_duration(6, -1) == 0.0


class TestFormatting:
    """Tests for duration and rate display strings."""

    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [
            (0, "0 minutes"),
            (45, "45 minutes"),
            (59, "59 minutes"),
            (60, "1 hours 0 minutes"),
            (90, "1 hours 30 minutes"),
            (125, "2 hours 5 minutes"),
        ],
    )
    def test_duration(self, minutes: int, expected: str) -> None:
        """Whole-minute durations."""
        assert format_duration_ms(minutes * MS_PER_MINUTE) == expected

    def test_rounds_half_up(self) -> None:
        """Seconds round to the nearest minute, halves upward."""
        assert format_duration_ms(29_999) == "0 minutes"
        assert format_duration_ms(30_000) == "1 minutes"
        assert format_duration_ms(59 * MS_PER_MINUTE + 30_000) == "1 hours 0 minutes"

    def test_negative_shows_zero(self) -> None:
        """Negative input renders as 0 minutes."""
        assert format_duration_ms(-MS_PER_MINUTE) == "0 minutes"

    def test_format_duration_from_timestamps(self) -> None:
        """format_duration() combines elapsed_ms and display."""
        assert format_duration(START, "2024-01-01T10:30:00Z") == "1 hours 30 minutes"
        assert format_duration(START, None) == "0 minutes"

    def test_rate_one_decimal(self) -> None:
        """Rates show exactly one decimal place."""
        assert format_rate(0.0) == "0.0"
        assert format_rate(6) == "6.0"
        assert format_rate(4.24) == "4.2"

    @pytest.mark.parametrize(
        ("rate", "expected"),
        [(2.25, "2.3"), (0.25, "0.3"), (4.75, "4.8"), (0.05, "0.1"), (3.349, "3.3")],
    )
    def test_rate_ties_round_up(self, rate: float, expected: str) -> None:
        """Exact halves round away from zero, not to even.

        Business context:
        A 9-item order picked over 4 hours runs at 2.25 items/h. The
        table, CSV and chart must all read 2.3 so exported figures match
        what managers saw on screen.

        Arrangement:
        Rates on and just below a tie.

        Action:
        format_rate() and round_rate().

        Assertion Strategy:
        Display string and rounded number agree.

        Testing Principle:
        Validates half-up rounding at the one-decimal boundary.
        """
        assert format_rate(rate) == expected
        assert round_rate(rate) == float(expected)
