# src/schedule_board/util/dates.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

ISO_DATE_FORMAT = "%Y-%m-%d"


def format_date(d: date | datetime) -> str:
    """yyyy-MM-dd; the same string is used as document key part and range predicate."""
    if isinstance(d, datetime):
        d = d.date()
    return d.strftime(ISO_DATE_FORMAT)


def parse_date(raw: str) -> date:
    """Strict yyyy-MM-dd parsing (lexicographic range queries rely on the exact shape)."""
    if not isinstance(raw, str) or len(raw) != 10:
        raise ValueError(f"expected yyyy-MM-dd date, got {raw!r}")
    try:
        return datetime.strptime(raw, ISO_DATE_FORMAT).date()
    except ValueError as exc:
        raise ValueError(f"expected yyyy-MM-dd date, got {raw!r}") from exc


def next_day(raw: str) -> str:
    return format_date(parse_date(raw) + timedelta(days=1))


@dataclass(frozen=True, slots=True)
class Week:
    start: date
    end: date
    days: tuple[date, ...]

    @property
    def start_str(self) -> str:
        return format_date(self.start)

    @property
    def end_str(self) -> str:
        return format_date(self.end)


def week_dates(d: date | datetime) -> Week:
    """Monday-first week containing `d`."""
    if isinstance(d, datetime):
        d = d.date()
    start = d - timedelta(days=d.weekday())
    days = tuple(start + timedelta(days=i) for i in range(7))
    return Week(start=start, end=days[-1], days=days)


def week_range(d: date | datetime) -> tuple[str, str]:
    week = week_dates(d)
    return week.start_str, week.end_str


def next_week(d: date) -> date:
    return d + timedelta(weeks=1)


def previous_week(d: date) -> date:
    return d - timedelta(weeks=1)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5
