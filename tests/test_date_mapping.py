from datetime import date

from date_utils import DateRange, add_days, days_between, format_date, format_date_range, is_weekend


def test_day_arithmetic():
    assert add_days(date(2025, 2, 27), 2) == date(2025, 3, 1)
    assert days_between(date(2025, 1, 1), date(2025, 2, 1)) == 31
    assert days_between(date(2025, 2, 1), date(2025, 1, 1)) == -31


def test_range_days_and_weekends():
    r = DateRange(start=date(2025, 1, 3), end=date(2025, 1, 6))
    days = list(r.days())
    assert len(days) == 4
    assert [is_weekend(d) for d in days] == [False, True, True, False]


def test_formats():
    d = date(2025, 2, 7)
    assert format_date(d) == "2025-02-07"
    assert format_date(d, "DD/MM/YYYY") == "07/02/2025"
    assert format_date(d, "MM/DD/YYYY") == "02/07/2025"
    assert format_date_range(DateRange(start=d, end=d)) == "2025-02-07 – 2025-02-07"
