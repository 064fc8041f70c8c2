from datetime import datetime, timezone
from typing import Optional


def now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def start_of_month(dt: Optional[datetime] = None) -> datetime:
    """
    First instant of the calendar month containing dt, in UTC.

    Args:
        dt: Reference time; naive values are taken to be UTC. Defaults to now.
    """
    dt = dt or now()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
