# backend/agrimetrics/services/analytics/date_range.py

from datetime import datetime, timedelta
from typing import Optional

from agrimetrics.schemas.filters import DateFilter

PERIODS = ("week", "month", "quarter", "year")
DEFAULT_PERIOD = "month"


def resolve_date_range(period: Optional[str], now: datetime) -> DateFilter:
    """
    Map a coarse period token to the window [start, now].

    week    -> now - 7 days
    month   -> first day of the current month
    quarter -> first day of the current quarter
    year    -> January 1 of the current year
    Anything else falls back to month.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "week":
        start = now - timedelta(days=7)
    elif period == "quarter":
        quarter_month = ((now.month - 1) // 3) * 3 + 1
        start = midnight.replace(month=quarter_month, day=1)
    elif period == "year":
        start = midnight.replace(month=1, day=1)
    else:
        start = midnight.replace(day=1)

    return DateFilter(gte=start, lte=now)


def previous_period(window: DateFilter) -> DateFilter:
    """Equally long window ending where ``window`` starts."""
    return DateFilter(gte=window.gte - window.span, lte=window.gte)
