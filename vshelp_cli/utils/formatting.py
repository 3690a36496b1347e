"""
Helper functions for formatting data into human-readable strings and for
converting the catalog's timestamps.
"""

import re
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# .NET writes up to 7 fractional digits; datetime holds microseconds
_FRACTION_REGEX = re.compile(r"\.(\d+)")


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_megabytes(bytes_size: int) -> str:
    """Formats bytes as decimal megabytes with one decimal (e.g., '12.5')."""
    return f"{bytes_size / 1000000:.1f}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def parse_timestamp(value: str) -> datetime:
    """
    Parses an ISO-8601 timestamp into an aware UTC datetime.

    A trailing 'Z' or an explicit offset is honoured; timestamps without
    either are taken to be UTC. Fractional seconds are cut to microseconds.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_REGEX.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, 1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Formats a datetime as an ISO-8601 UTC string with a 'Z' suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def timestamp_to_microseconds(value: datetime) -> int:
    """Exact microseconds since the Unix epoch, without float rounding."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(microseconds=1)
