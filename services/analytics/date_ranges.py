from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from services.analytics.errors import InvalidFilterError, InvalidRangeError

FILTERS = ("today", "weekly", "monthly", "yearly", "custom")

# which bucket layout the chart uses for each dashboard filter
CHART_RANGE_FOR_FILTER = {
    "today": "week",
    "weekly": "week",
    "monthly": "month",
    "yearly": "year",
    "custom": "custom",
}

ALL_TIME_START = date(2000, 1, 1)


@dataclass(frozen=True)
class DateRange:
    """Inclusive on both ends; start <= end."""
    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def days(self) -> Iterator[date]:
        d = self.start_date
        while d <= self.end_date:
            yield d
            d += timedelta(days=1)


# ----------------- time helpers -----------------
def start_of(d: date) -> datetime:
    return datetime.combine(d, time.min)

def end_of(d: date) -> datetime:
    return datetime.combine(d, time.max)

def last_day(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]

def day_range(d: date) -> DateRange:
    return DateRange(start_of(d), end_of(d))

def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now()


def parse_local_date(value: Optional[str], field: str) -> date:
    if not value:
        raise InvalidRangeError(f"Custom filter requires {field} (YYYY-MM-DD).")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidRangeError(f"Invalid {field} '{value}', expected YYYY-MM-DD.")


def validate_filter(filter: str) -> str:
    f = (filter or "").strip().lower()
    if f not in FILTERS:
        raise InvalidFilterError(f"Invalid filter '{filter}'. Must be one of {', '.join(FILTERS)}")
    return f


# ------------------------------
# Named ranges
# ------------------------------
def resolve_date_range(
    filter: str,
    before_date: Optional[str] = None,
    after_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Concrete [start, end] for a dashboard filter.

    today   -> rolling 7 days back through end of today (chart width; the
               summary cards use today_only_range instead)
    weekly  -> Monday 00:00 .. Sunday 23:59:59.999999 of the current week
    monthly -> the current calendar month only
    yearly  -> day 1 of this month two years ago .. end of today
    custom  -> before_date .. after_date, swapped when given backwards
    """
    f = validate_filter(filter)
    current = _now(now)
    today = current.date()

    if f == "today":
        return DateRange(start_of(today - timedelta(days=7)), end_of(today))

    if f == "weekly":
        monday = today - timedelta(days=today.weekday())
        return DateRange(start_of(monday), end_of(monday + timedelta(days=6)))

    if f == "monthly":
        first = today.replace(day=1)
        last = today.replace(day=last_day(today.year, today.month))
        return DateRange(start_of(first), end_of(last))

    if f == "yearly":
        return DateRange(start_of(date(today.year - 2, today.month, 1)), end_of(today))

    # custom
    first = parse_local_date(before_date, "beforeDate")
    second = parse_local_date(after_date, "afterDate")
    if first > second:
        first, second = second, first
    return DateRange(start_of(first), end_of(second))


def today_only_range(now: Optional[datetime] = None) -> DateRange:
    return day_range(_now(now).date())


def all_time_range(now: Optional[datetime] = None) -> DateRange:
    return DateRange(start_of(ALL_TIME_START), end_of(_now(now).date()))


def validate_month_year(month: int, year: int) -> None:
    if month is None or month < 1 or month > 12:
        raise InvalidRangeError("Invalid month. Must be between 1 and 12")
    if year is None or year < 2000 or year > 3000:
        raise InvalidRangeError("Invalid year. Must be between 2000 and 3000")


def month_range(month: int, year: int) -> DateRange:
    validate_month_year(month, year)
    return DateRange(
        start_of(date(year, month, 1)),
        end_of(date(year, month, last_day(year, month))),
    )


def chart_range_for(filter: str) -> str:
    return CHART_RANGE_FOR_FILTER[validate_filter(filter)]


# ------------------------------
# Shifting (previous periods)
# ------------------------------
def shift_days(r: DateRange, days: int) -> DateRange:
    delta = timedelta(days=days)
    return DateRange(r.start + delta, r.end + delta)


def _minus_years(d: datetime, years: int) -> datetime:
    y = d.year - years
    return d.replace(year=y, day=min(d.day, last_day(y, d.month)))


def shift_years(r: DateRange, years: int) -> DateRange:
    return DateRange(_minus_years(r.start, years), _minus_years(r.end, years))


def previous_month_range(r: DateRange) -> DateRange:
    """Full calendar month before the month r starts in."""
    first_of_current = r.start_date.replace(day=1)
    last_prev = first_of_current - timedelta(days=1)
    return DateRange(start_of(last_prev.replace(day=1)), end_of(last_prev))
