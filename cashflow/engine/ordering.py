"""
Sort/Filter Engine

Reorders or filters a snapshot of records by a selected method.
Pure: the input is never mutated and a new list is always returned.

Every method is listed in exactly one dispatch table below. Sorting is
stable in both directions, so ties keep insertion order and sorting an
already sorted list by the same method changes nothing.
"""

from datetime import date
from typing import Callable, Iterable, Optional

from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.engine.recurrence import next_occurrence
from cashflow.models.ledger import GoalSort, TransactionSort
from cashflow.models.records import Direction, Goal, Transaction

# Sort key for transactions with no occurrence left
FAR_PAST = date.min


def next_occurrence_key(transaction: Transaction, today: date) -> date:
    """Next occurrence date, or FAR_PAST once the schedule is exhausted."""
    return next_occurrence(transaction, today) or FAR_PAST


# method -> (key, descending); key receives (transaction, today)
_TRANSACTION_SORTS: dict[TransactionSort, tuple[Callable, bool]] = {
    TransactionSort.ALPHABETICAL: (lambda t, _: t.name, False),
    TransactionSort.REVERSE_ALPHABETICAL: (lambda t, _: t.name, True),
    TransactionSort.AMOUNT_ASCENDING: (lambda t, _: t.amount, False),
    TransactionSort.AMOUNT_DESCENDING: (lambda t, _: t.amount, True),
    TransactionSort.DATE_ASCENDING: (next_occurrence_key, False),
    TransactionSort.DATE_DESCENDING: (next_occurrence_key, True),
}

_TRANSACTION_FILTERS: dict[TransactionSort, Callable[[Transaction], bool]] = {
    TransactionSort.UNSORTED: lambda t: True,
    TransactionSort.INCOME: lambda t: t.direction == Direction.INCOME,
    TransactionSort.EXPENSES: lambda t: t.direction == Direction.EXPENSE,
    TransactionSort.RECURRING: lambda t: t.is_recurring,
    TransactionSort.NOT_RECURRING: lambda t: not t.is_recurring,
}

_GOAL_SORTS: dict[GoalSort, Optional[tuple[Callable[[Goal], object], bool]]] = {
    GoalSort.UNSORTED: None,
    GoalSort.ALPHABETICAL: (lambda g: g.name, False),
    GoalSort.REVERSE_ALPHABETICAL: (lambda g: g.name, True),
    GoalSort.AMOUNT_ASCENDING: (lambda g: g.target_amount, False),
    GoalSort.AMOUNT_DESCENDING: (lambda g: g.target_amount, True),
    GoalSort.DATE_ASCENDING: (lambda g: g.due_date, False),
    GoalSort.DATE_DESCENDING: (lambda g: g.due_date, True),
    GoalSort.AMOUNT_CONTRIBUTED: (lambda g: g.contributed_amount, False),
    GoalSort.AMOUNT_CONTRIBUTED_REVERSED: (lambda g: g.contributed_amount, True),
    GoalSort.AMOUNT_REMAINING: (lambda g: g.remaining_amount, False),
    GoalSort.AMOUNT_REMAINING_REVERSED: (lambda g: g.remaining_amount, True),
}


def order_transactions(
    method: TransactionSort,
    items: Iterable[Transaction],
    today: Optional[DateLike] = None,
) -> list[Transaction]:
    """
    Sort or filter transactions.

    Date sorts compare the next occurrence on or after today, not the
    original due date. Filters (INCOME, EXPENSES, RECURRING,
    NOT_RECURRING) keep insertion order and may shorten the list.
    """
    method = TransactionSort(method)
    items = list(items)

    if method in _TRANSACTION_FILTERS:
        keep = _TRANSACTION_FILTERS[method]
        return [t for t in items if keep(t)]

    today = normalize(today) if today is not None else current_date()
    key, descending = _TRANSACTION_SORTS[method]
    return sorted(items, key=lambda t: key(t, today), reverse=descending)


def order_goals(method: GoalSort, items: Iterable[Goal]) -> list[Goal]:
    """Sort goals. UNSORTED keeps insertion order."""
    method = GoalSort(method)
    items = list(items)

    entry = _GOAL_SORTS[method]
    if entry is None:
        return items

    key, descending = entry
    return sorted(items, key=key, reverse=descending)
