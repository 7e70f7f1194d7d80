"""Datetime utility functions for timezone handling."""
from datetime import datetime, UTC
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware in UTC.

    Naive datetimes are treated as UTC; aware datetimes are converted.

    Example:
        >>> ensure_utc(datetime(2025, 1, 1, 12, 0, 0)).tzinfo == UTC
        True

        >>> ensure_utc(None) is None
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> float:
    """
    Parse an ISO 8601 timestamp into UTC epoch seconds.

    Unparseable or empty values map to ``0.0`` so they sort before every real
    submission.
    """
    text = (value or "").strip()
    if not text:
        return 0.0
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return (ensure_utc(datetime.fromisoformat(text)) - EPOCH).total_seconds()
    except (ValueError, OverflowError):
        return 0.0
