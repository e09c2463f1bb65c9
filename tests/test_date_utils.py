from datetime import date, datetime, timezone

import pytest

from dormbill.utils.date_utils import (
    days_overdue,
    default_due_date,
    month_end,
    month_start,
    parse_date,
)


def test_month_start_and_end():
    assert month_start(date(2025, 2, 17)) == date(2025, 2, 1)
    assert month_start(datetime(2025, 2, 17, 23, 59)) == date(2025, 2, 1)
    assert month_end(date(2024, 2, 3)) == date(2024, 2, 29)


def test_default_due_date_is_in_following_month():
    assert default_due_date(date(2025, 3, 1)) == date(2025, 4, 5)
    assert default_due_date(date(2025, 12, 1)) == date(2026, 1, 5)
    assert default_due_date(date(2025, 1, 31)) == date(2025, 2, 5)
    assert default_due_date(date(2025, 1, 1), day_of_next_month=31) == date(2025, 2, 28)


def test_days_overdue_never_negative():
    assert days_overdue(date(2025, 4, 5), date(2025, 4, 12)) == 7
    assert days_overdue(date(2025, 4, 5), date(2025, 4, 1)) == 0


@pytest.mark.parametrize(
    "value",
    [
        "2025-03-15",
        "2025-03-15T10:30:00Z",
        "2025-03-15T10:30:00+07:00",
        date(2025, 3, 15),
        datetime(2025, 3, 15, 10, 30, tzinfo=timezone.utc),
    ],
)
def test_parse_date_accepts_payload_formats(value):
    assert parse_date(value) == date(2025, 3, 15)
