"""Time utilities for consistent timestamp handling."""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone.
    """
    return datetime.now(UTC)


def format_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 string in UTC with a trailing ``Z``.

    Args:
        dt: Datetime to format. Naive datetimes are assumed to be UTC.

    Returns:
        ISO 8601 formatted string, e.g. ``2024-05-04T14:00:00Z``.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso(s: str | None) -> datetime | None:
    """Parse an ISO 8601 string (exchange style, ``Z`` suffix allowed).

    Args:
        s: ISO 8601 formatted string.

    Returns:
        Timezone-aware UTC datetime, or None for empty or unparseable input.
    """
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def kickoff_window(
    now: datetime,
    horizon_hours: float,
    lookback_hours: float = 2.0,
) -> tuple[datetime, datetime]:
    """Compute the ``[now - lookback, now + horizon]`` kickoff window."""
    return now - timedelta(hours=lookback_hours), now + timedelta(hours=horizon_hours)
