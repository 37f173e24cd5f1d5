"""Formatting and time helpers shared by the tooltip content and the playback display."""
import datetime
import math
from typing import Union

BINARY_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB"]

TimestampLike = Union[int, float, str, datetime.datetime]


def parse_timestamp(value: TimestampLike) -> int:
    """
    Convert an ISO-8601 string, a datetime or epoch milliseconds to epoch milliseconds.

    Strings are always read as ISO-8601 dates, never as numbers, so "2017"
    is not 2017 ms after the epoch. Naive datetimes are taken as UTC.

    Raises:
        ValueError: If the value cannot be interpreted as an instant.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Invalid timestamp {value!r}")
        try:
            # must stay displayable as a date
            to_datetime(value)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Timestamp out of range {value!r}") from e
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        # fromisoformat() before 3.11 does not understand the 'Z' suffix
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp {value!r}") from e
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return int(round(value.timestamp() * 1000))
    raise ValueError(f"Invalid timestamp {value!r}")


def to_datetime(timestamp_ms: int) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(timestamp_ms / 1000.0, tz=datetime.timezone.utc)


def date_format(timestamp_ms: int) -> str:
    """E.g. 'Tue, Jan 03, 2017, 14:05:09 UTC'."""
    return to_datetime(timestamp_ms).strftime("%a, %b %d, %Y, %H:%M:%S UTC")


def elapsed(start_ms: int, end_ms: int) -> str:
    """Duration between two instants as H:MM:SS(.ffffff)."""
    return str(datetime.timedelta(milliseconds=end_ms - start_ms))


def human_file_size(n_bytes: float) -> str:
    """
    Format a byte count with binary prefixes.

    Examples:
        - human_file_size(512) -> '512 B'
        - human_file_size(1536) -> '1.5 KiB'
    """
    if n_bytes <= 0:
        return "0 B"
    value = float(n_bytes)
    i = 0
    while value >= 1024 and i < len(BINARY_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {BINARY_UNITS[i]}"


def speed(n_bytes: float, duration_ms: float) -> str:
    """Average transfer speed; '-' when the duration is zero."""
    if duration_ms <= 0:
        return "-"
    bps = n_bytes / (duration_ms / 1000.0)
    return f"{human_file_size(bps)} / s"
