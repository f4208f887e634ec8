"""
Ledger Aggregator

Sums the signed amounts of every occurrence that falls inside a window.

Windows:
- DAILY:   occurrence is today
- WEEKLY:  same ISO week number AND same calendar year as today
           (the calendar year, not the ISO year: on 2024-12-30, which
           is in ISO week 1, an occurrence on 2024-01-01 also counts)
- MONTHLY: same month and year as today
- YEARLY:  same year as today
- CUSTOM:  inside an inclusive [start, end] range

DESIGN DECISION: A reversed custom range (start > end) is not an error.
It is replaced by the single day [today, today] and the fallback is
logged. Callers that want a strict contract check DateRange.is_valid
before asking.

Sums are exact Decimals. Rounding for display happens in the caller
(round_money), never inside the loop.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional

import structlog

from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.models.ledger import BalanceWindow, DateRange, FeasibilityRating
from cashflow.models.records import Goal, Transaction

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_range(
    date_range: Optional[DateRange],
    today: date,
) -> tuple[DateRange, bool]:
    """
    Effective range for a CUSTOM window.

    Returns (range, used_fallback). A missing or reversed range becomes
    [today, today].
    """
    if date_range is not None and date_range.is_valid:
        return date_range, False

    if date_range is not None:
        logger.warning(
            "custom_range_reversed",
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
            fallback=today.isoformat(),
        )
    return DateRange.single_day(today), True


def window_predicate(
    window: BalanceWindow,
    today: date,
    date_range: Optional[DateRange] = None,
) -> Callable[[date], bool]:
    """Membership test for one window evaluated against today."""
    window = BalanceWindow(window)

    if window == BalanceWindow.DAILY:
        return lambda d: d == today

    if window == BalanceWindow.WEEKLY:
        this_week = today.isocalendar()[1]
        return lambda d: d.isocalendar()[1] == this_week and d.year == today.year

    if window == BalanceWindow.MONTHLY:
        return lambda d: d.month == today.month and d.year == today.year

    if window == BalanceWindow.YEARLY:
        return lambda d: d.year == today.year

    effective, _ = resolve_range(date_range, today)
    return effective.contains


def window_occurrences(
    window: BalanceWindow,
    transactions: Iterable[Transaction],
    date_range: Optional[DateRange] = None,
    today: Optional[DateLike] = None,
) -> list[tuple[Transaction, date]]:
    """Every (transaction, occurrence) pair inside the window, in input order."""
    today = normalize(today) if today is not None else current_date()
    inside = window_predicate(window, today, date_range)

    return [
        (transaction, occurrence)
        for transaction in transactions
        for occurrence in transaction.occurrences
        if inside(occurrence)
    ]


def balance(
    window: BalanceWindow,
    transactions: Iterable[Transaction],
    date_range: Optional[DateRange] = None,
    today: Optional[DateLike] = None,
) -> Decimal:
    """
    Signed balance of all occurrences inside a window.

    Args:
        window: Which window to aggregate over
        transactions: Snapshot of transactions
        date_range: Inclusive range, only used by CUSTOM
        today: Reference date (defaults to the current date)

    Returns:
        Exact sum; income adds, expense subtracts.
    """
    total = Decimal("0")
    for transaction, _ in window_occurrences(window, transactions, date_range, today):
        total += transaction.signed_amount
    return total


def feasibility_range(goal: Goal, today: Optional[DateLike] = None) -> DateRange:
    """The [today, due date] range a goal is judged over."""
    today = normalize(today) if today is not None else current_date()
    return DateRange(start=today, end=goal.due_date)


def feasibility_score(
    goal: Goal,
    transactions: Iterable[Transaction],
    today: Optional[DateLike] = None,
) -> Optional[Decimal]:
    """
    Projected balance until the due date divided by the remaining amount.

    A negative balance inverts the ratio (1 / ratio) instead of leaving
    a small negative fraction. This makes the score discontinuous around
    zero; it is kept as is.

    Returns None when nothing remains to be contributed.
    """
    remaining = goal.remaining_amount
    if remaining <= 0:
        return None

    total = balance(
        BalanceWindow.CUSTOM,
        transactions,
        date_range=feasibility_range(goal, today),
        today=today,
    )
    ratio = total / remaining
    if total < 0:
        ratio = 1 / ratio
    return round_money(ratio)


def rate_feasibility(score: Decimal) -> FeasibilityRating:
    """Achievability tier for a feasibility score."""
    if score > 10:
        return FeasibilityRating.EXTREMELY_ACHIEVABLE
    if score > 5:
        return FeasibilityRating.VERY_ACHIEVABLE
    if score > 3:
        return FeasibilityRating.QUITE_ACHIEVABLE
    if score > Decimal("1.5"):
        return FeasibilityRating.ACHIEVABLE
    if score >= 1:
        return FeasibilityRating.ACHIEVABLE_WITH_SAVINGS
    if score >= Decimal("0.5"):
        return FeasibilityRating.DIFFICULT
    if score > 0:
        return FeasibilityRating.UNREALISTIC
    return FeasibilityRating.NEGATIVE_CASHFLOW
