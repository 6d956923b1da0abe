"""Time and formatting helpers.

The ledger stores naive UTC timestamps. Month and day buckets are computed in
the configured ledger timezone and converted back to naive UTC bounds so they
can be compared directly against stored ``created_at`` values.
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current time as naive UTC (storage format)."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_storage_utc(dt: datetime) -> datetime:
    """Normalize a datetime to naive UTC.

    Naive input is assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def _to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    return to_storage_utc(dt).replace(tzinfo=UTC).astimezone(tz)


def _local_to_storage(local: datetime) -> datetime:
    return local.astimezone(UTC).replace(tzinfo=None)


def month_bounds(reference: datetime, timezone: str = "UTC") -> tuple[datetime, datetime]:
    """Get the calendar month containing ``reference`` as naive UTC bounds.

    Args:
        reference: Reference instant (aware, or naive UTC)
        timezone: IANA timezone the month is measured in

    Returns:
        Tuple of (start, end) where start is inclusive and end is exclusive
    """
    tz = ZoneInfo(timezone)
    local = _to_local(reference, tz)
    start = datetime(local.year, local.month, 1, tzinfo=tz)
    if local.month == 12:
        end = datetime(local.year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(local.year, local.month + 1, 1, tzinfo=tz)
    return _local_to_storage(start), _local_to_storage(end)


def month_bounds_for(year: int, month: int, timezone: str = "UTC") -> tuple[datetime, datetime]:
    """Get naive UTC bounds for an explicit year/month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    tz = ZoneInfo(timezone)
    return month_bounds(datetime(year, month, 1, 12, tzinfo=tz), timezone)


def day_bounds(reference: datetime, timezone: str = "UTC") -> tuple[datetime, datetime]:
    """Get the calendar day containing ``reference`` as naive UTC bounds [start, end)."""
    tz = ZoneInfo(timezone)
    local = _to_local(reference, tz)
    start = datetime(local.year, local.month, local.day, tzinfo=tz)
    end = datetime.combine(start.date() + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return _local_to_storage(start), _local_to_storage(end)


def month_key(reference: datetime, timezone: str = "UTC") -> str:
    """Format the ledger month of ``reference`` as ``YYYY-MM``."""
    local = _to_local(reference, ZoneInfo(timezone))
    return f"{local.year}-{local.month:02d}"


def local_date(reference: datetime, timezone: str = "UTC") -> str:
    """Format the ledger day of ``reference`` as ``YYYY-MM-DD``."""
    return _to_local(reference, ZoneInfo(timezone)).date().isoformat()
