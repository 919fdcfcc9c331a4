"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def hours_between(earlier: datetime, later: datetime) -> float:
    """Return the elapsed hours from ``earlier`` to ``later`` (never negative)."""
    delta = as_utc(later) - as_utc(earlier)
    return max(delta.total_seconds(), 0.0) / 3600.0
