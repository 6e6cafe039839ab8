"""
Metric calculations for Pick Dashboard.

PURPOSE: Elapsed time, picking rate, and duration formatting.
AI CONTEXT: Pure data processing - no I/O, no rendering.

NUMERIC vs DISPLAY:
Numeric helpers (elapsed_ms, picking_rate*) return numbers used for
sorting and charting. Display helpers (format_*) turn those numbers into
strings. Table cells, charts, and CSV fields all call the same helpers,
so what is exported always matches what is shown.

TIMESTAMP POLICY:
- Timestamps are ISO 8601; "Z" and explicit offsets are honored
- Naive timestamps are treated as UTC
- Missing or unparseable timestamps make the elapsed time 0
- Negative elapsed time (end before start) is clamped to 0
A rate computed from zero elapsed time is 0.0, never NaN or infinity.

USAGE:
    rate = picking_rate(5, "2024-01-01T09:00:00Z", "2024-01-01T10:30:00Z")
    format_rate(rate)  # "3.3"
    round_rate(2.25)   # 2.3 (halves round up, never to even)
    format_duration("2024-01-01T09:00:00Z", "2024-01-01T10:30:00Z")
    # "1 hours 30 minutes"
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

__all__ = [
    "InvalidTimestampError",
    "MS_PER_MINUTE",
    "MS_PER_HOUR",
    "parse_timestamp",
    "elapsed_ms",
    "picking_rate",
    "picking_rate_from_duration",
    "format_duration",
    "format_duration_ms",
    "format_rate",
    "round_rate",
]

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


class InvalidTimestampError(ValueError):
    """Raised when a timestamp string is not valid ISO 8601."""


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO 8601 timestamp into an aware UTC-comparable datetime.

    Handles both 'Z' suffix and '+00:00' offsets. Naive values are
    interpreted as UTC so that arithmetic never depends on the host's
    local time zone.

    Business context: Order and step timestamps are stored as ISO strings
    by the picking screens. Every duration on the dashboard is derived
    from them.

    Args:
        value: ISO 8601 string, datetime, or None/empty for "absent".

    Returns:
        Timezone-aware datetime, or None if value is absent.

    Raises:
        InvalidTimestampError: If value is a non-empty string that cannot
            be parsed.

    Example:
        >>> parse_timestamp('2024-01-01T09:00:00Z').isoformat()
        '2024-01-01T09:00:00+00:00'
        >>> parse_timestamp('') is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidTimestampError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _parse_or_none(value: str | datetime | None) -> datetime | None:
    """Parse a timestamp, logging and returning None when malformed."""
    try:
        return parse_timestamp(value)
    except InvalidTimestampError:
        logger.warning("Treating unparseable timestamp %r as zero duration", value)
        return None


def elapsed_ms(start: str | datetime | None, end: str | datetime | None) -> int:
    """
    Calculate milliseconds between two timestamps.

    Business context: Order duration is the basis of both the duration
    column and the picking rate. Returning 0 for unmeasurable orders keeps
    one bad timestamp from breaking a whole day's report.

    Args:
        start: Order start timestamp.
        end: Order end timestamp.

    Returns:
        Non-negative elapsed milliseconds. 0 if either timestamp is missing
        or unparseable, or if end is before start.

    Example:
        >>> elapsed_ms('2024-01-01T09:00:00Z', '2024-01-01T10:30:00Z')
        5400000
        >>> elapsed_ms('2024-01-01T09:00:00Z', None)
        0
    """
    start_dt = _parse_or_none(start)
    end_dt = _parse_or_none(end)
    if start_dt is None or end_dt is None:
        return 0
    millis = (end_dt - start_dt) // timedelta(milliseconds=1)
    return max(millis, 0)


def picking_rate_from_duration(total_sku: int, total_time_ms: int | float) -> float:
    """
    Calculate items picked per hour from a pre-summed duration.

    Used by the worker rollup, where the summed time can legitimately be
    zero if every order had zero measured time.

    Args:
        total_sku: Number of items picked.
        total_time_ms: Elapsed milliseconds.

    Returns:
        Items per hour, or 0.0 when the duration is zero or negative.

    Example:
        >>> picking_rate_from_duration(5, 5_400_000)
        3.3333333333333335
        >>> picking_rate_from_duration(5, 0)
        0.0
    """
    hours = total_time_ms / MS_PER_HOUR
    if hours <= 0:
        return 0.0
    return total_sku / hours


def picking_rate(
    total_sku: int,
    start: str | datetime | None,
    end: str | datetime | None,
) -> float:
    """
    Calculate items picked per hour between two timestamps.

    Args:
        total_sku: Number of items picked.
        start: Order start timestamp.
        end: Order end timestamp.

    Returns:
        Items per hour; 0.0 when end <= start or a timestamp is unusable.

    Example:
        >>> picking_rate(5, '2024-01-01T09:00:00Z', '2024-01-01T10:30:00Z')
        3.3333333333333335
    """
    return picking_rate_from_duration(total_sku, elapsed_ms(start, end))


def format_duration_ms(total_ms: int | float) -> str:
    """
    Format milliseconds as "N minutes" or "H hours M minutes".

    Minutes are rounded half up; anything under 60 minutes is shown in
    minutes only.

    Args:
        total_ms: Duration in milliseconds. Negative values show as 0.

    Returns:
        Duration string.

    Example:
        >>> format_duration_ms(45 * 60_000)
        '45 minutes'
        >>> format_duration_ms(125 * 60_000)
        '2 hours 5 minutes'
    """
    minutes = (max(int(total_ms), 0) + MS_PER_MINUTE // 2) // MS_PER_MINUTE
    if minutes < 60:
        return f"{minutes} minutes"
    return f"{minutes // 60} hours {minutes % 60} minutes"


def format_duration(start: str | datetime | None, end: str | datetime | None) -> str:
    """
    Format the time between two timestamps for display.

    Args:
        start: Start timestamp.
        end: End timestamp.

    Returns:
        Duration string as produced by format_duration_ms().
    """
    return format_duration_ms(elapsed_ms(start, end))


def round_rate(rate: float) -> float:
    """
    Round a picking rate to one decimal place, halves upward.

    Built-in round() and "{:.1f}" round exact ties to even, so 2.25 would
    become 2.2. Rates are rounded through the shortest decimal repr of the
    float instead, which keeps 2.25 at 2.3 and 0.25 at 0.3.

    Args:
        rate: Items per hour.

    Returns:
        Rate rounded to one decimal.

    Example:
        >>> round_rate(2.25)
        2.3
        >>> round_rate(3.3333)
        3.3
    """
    return float(Decimal(repr(float(rate))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_rate(rate: float) -> str:
    """Format a picking rate with one decimal place."""
    return f"{round_rate(rate):.1f}"
