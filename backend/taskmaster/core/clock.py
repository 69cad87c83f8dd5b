from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC wall-clock time without tzinfo; all stored timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
