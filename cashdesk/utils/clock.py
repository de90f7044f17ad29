from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the way timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
