"""RevPace — Finance Calendar.

The business week runs Thursday → Wednesday. Every surface (ingestion,
aggregation, the agent tools) derives week and month positions from
these functions; nothing else re-implements the week rule.

All functions are pure: they accept a ``date``, a ``datetime`` or a date
string and never read the clock. Callers pass "today" explicitly.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import List, Tuple, Union

from app.core.exceptions import ValidationError
from app.models.pacing_models import FinanceWeek

DateLike = Union[date, datetime, str]

THURSDAY = 4  # Sun=0 .. Sat=6
WEEK_LENGTH = 7
END_OF_DAY = time(23, 59, 59, 999000)

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%m/%d/%y")


def parse_date(value: DateLike) -> date:
    """Coerce a date, datetime or date string into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid date: {value!r}", field="date")

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(f"Invalid date format: {value}", field="date")


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m").date()
    except (AttributeError, ValueError):
        raise ValidationError(
            f"Invalid month format: {value!r}. Use YYYY-MM", field="month"
        )


def _weekday_index(d: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return (d.weekday() + 1) % 7


def week_start(reference: DateLike) -> datetime:
    """Most recent Thursday on or before ``reference``, at midnight."""
    d = parse_date(reference)
    weekday = _weekday_index(d)
    if weekday >= THURSDAY:
        offset = weekday - THURSDAY
    else:
        offset = weekday + 3
    return datetime.combine(d - timedelta(days=offset), time.min)


def week_end(reference: DateLike) -> datetime:
    """The Wednesday closing ``reference``'s finance week, at end of day."""
    start = week_start(reference)
    return datetime.combine(start.date() + timedelta(days=6), END_OF_DAY)


def days_in_month(reference: DateLike) -> int:
    d = parse_date(reference)
    return calendar.monthrange(d.year, d.month)[1]


def days_accounted(reference: DateLike) -> int:
    """Day-of-month of ``reference`` (1-based).

    Not clamped: the caller is responsible for ``reference`` falling in the
    month being reported on (see pacing_engine.resolve_pacing_window).
    """
    return parse_date(reference).day


def days_left(reference: DateLike) -> int:
    return days_in_month(reference) - days_accounted(reference)


def month_bounds(reference: DateLike) -> Tuple[date, date]:
    """First and last day of ``reference``'s calendar month."""
    d = parse_date(reference)
    return d.replace(day=1), d.replace(day=days_in_month(d))


def first_thursday_on_or_after(reference: DateLike) -> date:
    d = parse_date(reference)
    return d + timedelta(days=(THURSDAY - _weekday_index(d)) % 7)


def finance_weeks_between(start: DateLike, end: DateLike) -> List[FinanceWeek]:
    """All finance weeks whose Thursday falls in [first Thursday ≥ start, end].

    Contract days before the first Thursday belong to no week.
    """
    current = first_thursday_on_or_after(start)
    stop = parse_date(end)

    weeks: List[FinanceWeek] = []
    while current <= stop:
        weeks.append(FinanceWeek(start=current, end=current + timedelta(days=6)))
        current += timedelta(days=WEEK_LENGTH)
    return weeks


def finance_weeks_overlapping(start: DateLike, end: DateLike) -> List[FinanceWeek]:
    """All finance weeks that share at least one day with [start, end]."""
    first = parse_date(start)
    stop = parse_date(end)
    if first > stop:
        return []

    current = week_start(first).date()
    weeks: List[FinanceWeek] = []
    while current <= stop:
        weeks.append(FinanceWeek(start=current, end=current + timedelta(days=6)))
        current += timedelta(days=WEEK_LENGTH)
    return weeks
