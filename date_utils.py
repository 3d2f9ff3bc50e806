from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

_DATE_FORMATS = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar window."""

    start: date
    end: date

    def days(self) -> Iterator[date]:
        cur = self.start
        while cur <= self.end:
            yield cur
            cur += timedelta(days=1)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def format_date(d: date, date_format: str = "YYYY-MM-DD") -> str:
    return d.strftime(_DATE_FORMATS.get(date_format, "%Y-%m-%d"))


def format_date_range(r: DateRange, date_format: str = "YYYY-MM-DD") -> str:
    return f"{format_date(r.start, date_format)} – {format_date(r.end, date_format)}"
