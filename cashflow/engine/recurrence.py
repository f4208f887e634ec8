"""
Recurrence Expander

Turns (start, period, end) into the ordered list of occurrence dates.

DESIGN DECISION: Calendar periods are anchored to the start date.
The n-th monthly occurrence is ``start + n months`` computed from the
original start, never from the previous occurrence. relativedelta clamps
to the last valid day of a short month, so a transaction due on the 31st
falls on the 31st whenever the month has one and on the month's last day
otherwise, without drifting to the 28th for the rest of the schedule.
Yearly occurrences follow the same rule (Feb 29 -> Feb 28 in common years).

Expansion never runs past the end date. "Forever" is a bounded surrogate
end date, see forever_end_date().
"""

from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from cashflow.config import get_settings
from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.models.records import RecurrencePeriod, Transaction


# Fixed-length periods step by a constant number of days
_FIXED_STEPS = {
    RecurrencePeriod.DAILY: timedelta(days=1),
    RecurrencePeriod.WEEKLY: timedelta(days=7),
    RecurrencePeriod.FORTNIGHTLY: timedelta(days=14),
}

# Calendar periods are offsets from the anchor
_CALENDAR_STEPS = {
    RecurrencePeriod.MONTHLY: relativedelta(months=1),
    RecurrencePeriod.YEARLY: relativedelta(years=1),
}


def is_recurring(period: RecurrencePeriod) -> bool:
    return RecurrencePeriod(period) != RecurrencePeriod.NONE


def occurrence_at(start: DateLike, period: RecurrencePeriod, index: int) -> date:
    """
    The index-th occurrence of a schedule (index 0 is the start).

    Fixed periods multiply the step; calendar periods multiply the
    offset and apply it to the anchor, which keeps the day-of-month.
    """
    start = normalize(start)
    period = RecurrencePeriod(period)

    if period == RecurrencePeriod.NONE or index == 0:
        return start
    if period in _FIXED_STEPS:
        return start + _FIXED_STEPS[period] * index
    return start + _CALENDAR_STEPS[period] * index


def expand(start: DateLike, period: RecurrencePeriod, end: DateLike) -> list[date]:
    """
    Enumerate every occurrence date from start up to and including end.

    Args:
        start: Due date of the first occurrence
        period: Recurrence period
        end: Last date an occurrence may fall on (inclusive)

    Returns:
        Ascending list beginning with start. [start] when the period is
        NONE or when end lies before start.
    """
    start = normalize(start)
    end = normalize(end)
    period = RecurrencePeriod(period)

    dates = [start]
    if period == RecurrencePeriod.NONE or end < start:
        return dates

    index = 1
    current = occurrence_at(start, period, index)
    while current <= end:
        dates.append(current)
        index += 1
        current = occurrence_at(start, period, index)

    return dates


def forever_end_date(from_date: Optional[DateLike] = None, years: Optional[int] = None) -> date:
    """
    Bounded stand-in for "repeats forever".

    Adds the configured horizon (12 years by default) to from_date
    (today when omitted).
    """
    base = normalize(from_date) if from_date is not None else current_date()
    if years is None:
        years = get_settings().engine.forever_horizon_years
    return base + relativedelta(years=years)


def next_occurrence(transaction: Transaction, today: Optional[DateLike] = None) -> Optional[date]:
    """First occurrence on or after today, or None once the schedule is exhausted."""
    today = normalize(today) if today is not None else current_date()
    for occurrence in transaction.occurrences:
        if occurrence >= today:
            return occurrence
    return None


def remaining_occurrences(transaction: Transaction, today: Optional[DateLike] = None) -> list[date]:
    """Occurrences on or after today."""
    today = normalize(today) if today is not None else current_date()
    return [d for d in transaction.occurrences if d >= today]
