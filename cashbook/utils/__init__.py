"""Utility helpers."""

from cashbook.utils.helpers import (
    day_bounds,
    local_date,
    month_bounds,
    month_bounds_for,
    month_key,
    to_storage_utc,
    utc_now,
)

__all__ = [
    "day_bounds",
    "local_date",
    "month_bounds",
    "month_bounds_for",
    "month_key",
    "to_storage_utc",
    "utc_now",
]
