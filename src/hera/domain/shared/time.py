"""Clock and calendar helpers for the domain layer."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def posting_period_for(day: date) -> str:
    """Accounting month (YYYY-MM) a booking on ``day`` belongs to."""
    return f"{day.year:04d}-{day.month:02d}"
