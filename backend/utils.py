from datetime import datetime
import pytz

from config import LOCAL_TIMEZONE

LOCAL_TZ = pytz.timezone(LOCAL_TIMEZONE)


def to_local(dt: datetime) -> datetime:
    """Convert a naive or aware datetime to a local timezone-aware datetime.
    If naive, assume it's already local time.
    """
    if dt.tzinfo is None:
        return LOCAL_TZ.localize(dt)
    return dt.astimezone(LOCAL_TZ)


def now_local() -> datetime:
    """Get current time in the local timezone."""
    return datetime.now(pytz.UTC).astimezone(LOCAL_TZ)


def format_duration(seconds: float) -> str:
    """Format a duration as hours and minutes, e.g. '1h 5m'."""
    total = int(seconds)
    hours = total // 3600
    minutes = total % 3600 // 60
    return f"{hours}h {minutes}m"
