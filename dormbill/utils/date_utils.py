# dormbill/utils/date_utils.py
"""
Date helpers for billing periods.

A billing month is always represented by the first calendar day of that
month; every comparison of billing periods goes through `month_start`.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from dateutil import parser
from dateutil.relativedelta import relativedelta

UTC = timezone.utc


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def today_in(tz_name: str) -> date:
    """Today's date in the named timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def month_start(value: date | datetime) -> date:
    """Normalize a date to the first day of its month."""
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)


def month_end(value: date | datetime) -> date:
    """Last calendar day of the month containing `value`."""
    start = month_start(value)
    last_day = calendar.monthrange(start.year, start.month)[1]
    return start.replace(day=last_day)


def default_due_date(billing_month: date, day_of_next_month: int = 5) -> date:
    """Due date used when none is supplied: a fixed day of the following month."""
    return month_start(billing_month) + relativedelta(months=1, day=day_of_next_month)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def days_overdue(due_date: date, today: date) -> int:
    """Whole days past the due date, never negative."""
    return max(0, days_between(due_date, today))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def parse_date(value: date | datetime | str) -> date:
    """Accept a date, a datetime, or an ISO date/datetime string from a job payload."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(value).date()
