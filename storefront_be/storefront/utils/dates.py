from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the models store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_key(value) -> str:
    """Calendar bucket key (YYYY-MM-DD) for a date or datetime."""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise TypeError(f"Expected date or datetime, got {type(value).__name__}")
    return value.isoformat()
