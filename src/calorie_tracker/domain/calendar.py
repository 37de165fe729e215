"""Calendar-day helpers."""

from datetime import datetime, timedelta, tzinfo


def as_aware(value: datetime, tz: tzinfo) -> datetime:
    """Attach ``tz`` to naive timestamps; aware ones are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    """Return local midnight of the day containing ``moment`` in ``tz``."""
    local = as_aware(moment, tz).astimezone(tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def day_bounds(moment: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` range of the local day containing ``moment``."""
    start = start_of_day(moment, tz)
    return start, start + timedelta(days=1)


def same_day(first: datetime, second: datetime, tz: tzinfo) -> bool:
    """Return True when both moments fall on the same local calendar day."""
    return start_of_day(first, tz) == start_of_day(second, tz)
