"""
Date range handling shared by every statistics query

A range is a pair of optional calendar dates, both inclusive. Filtering
uses [start 00:00:00, end + 1 day 00:00:00) on attempt timestamps so
that the whole end day is included regardless of time of day.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class DateRange:
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def lower_bound(self) -> Optional[datetime]:
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, time.min)

    @property
    def upper_bound(self) -> Optional[datetime]:
        """Exclusive upper bound: midnight after end_date"""
        if self.end_date is None:
            return None
        return datetime.combine(self.end_date + timedelta(days=1), time.min)

    @property
    def is_all_time(self) -> bool:
        return self.start_date is None and self.end_date is None

    def apply(self, query, column):
        """Add the range filter on ``column`` to a SQLAlchemy query"""
        if self.lower_bound is not None:
            query = query.filter(column >= self.lower_bound)
        if self.upper_bound is not None:
            query = query.filter(column < self.upper_bound)
        return query


ALL_TIME = DateRange()

FILTER_LABELS = {
    "7days": "Last 7 Days",
    "30days": "Last 30 Days",
    "custom": "Custom Range",
    "all": "All Time",
}


def resolve_date_range(
    filter_value: Optional[str],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Tuple[DateRange, str, str]:
    """
    Map a dashboard filter preset to a date range

    Returns:
        Tuple of (date_range, filter_label, normalized_filter_value)
    """
    today = today or utcnow().date()

    if filter_value == "7days":
        date_range = DateRange(today - timedelta(days=7), today)
    elif filter_value == "30days":
        date_range = DateRange(today - timedelta(days=30), today)
    elif filter_value == "custom":
        date_range = DateRange(start_date, end_date)
    else:
        filter_value = "all"
        date_range = ALL_TIME

    return date_range, FILTER_LABELS[filter_value], filter_value
