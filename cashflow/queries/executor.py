"""
Query Execution Engine

DESIGN DECISION: Queries are DETERMINISTIC and READ-ONLY.
Each call takes exactly one snapshot from the record store and runs the
pure engine functions over it. Nothing here writes to the store, so two
calls with the same snapshot and the same "today" give the same answer.

UI picker labels are accepted wherever an enum is; they are mapped once,
at the top of each call.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from cashflow.audit import AuditLogger
from cashflow.engine import ledger, ordering
from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.engine.recurrence import next_occurrence
from cashflow.models.ledger import (
    BalanceSummary,
    BalanceWindow,
    DateRange,
    FeasibilityReport,
    GoalSort,
    TransactionSort,
)
from cashflow.models.records import Goal, Transaction
from cashflow.services.storage import RecordStoreInterface

logger = structlog.get_logger(__name__)


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


class CashflowQueries:
    """
    Read side of the application.

    GUARANTEES:
    - Only returns values computed from stored records
    - One snapshot per call
    - Lenient recoveries (unknown labels, reversed ranges) are logged
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()

    def balance(
        self,
        window: Union[str, BalanceWindow],
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        today: Optional[DateLike] = None,
    ) -> BalanceSummary:
        """
        Balance over one window.

        Args:
            window: Window or picker label ("Daily", "Custom", ...)
            start: Range start, only used by CUSTOM
            end: Range end, only used by CUSTOM
            today: Reference date (defaults to the current date)
        """
        window = BalanceWindow.from_label(window)
        today = normalize(today) if today is not None else current_date()
        transactions = self._store.snapshot().transactions

        effective: Optional[DateRange] = None
        used_fallback = False
        if window == BalanceWindow.CUSTOM:
            requested = None
            if start is not None and end is not None:
                requested = DateRange(start=normalize(start), end=normalize(end))
            effective, used_fallback = ledger.resolve_range(requested, today)
            if used_fallback:
                self._audit.log_custom_range_fallback(
                    start=start.isoformat() if start is not None else "",
                    end=end.isoformat() if end is not None else "",
                    fallback=today.isoformat(),
                )

        pairs = ledger.window_occurrences(window, transactions, effective, today)
        total = sum((t.signed_amount for t, _ in pairs), Decimal("0"))

        summary = BalanceSummary(
            window=window,
            computed_for=today,
            date_range=effective,
            balance=total,
            rounded_balance=ledger.round_money(total),
            used_fallback=used_fallback,
            occurrence_count=len(pairs),
        )
        self._audit.log_balance_computed(
            window=window.value,
            balance=str(summary.rounded_balance),
            occurrence_count=summary.occurrence_count,
        )
        return summary

    def overview(self, today: Optional[DateLike] = None) -> dict[BalanceWindow, Decimal]:
        """Rounded balance for every named window, from one snapshot."""
        today = normalize(today) if today is not None else current_date()
        transactions = self._store.snapshot().transactions

        return {
            window: ledger.round_money(ledger.balance(window, transactions, today=today))
            for window in BalanceWindow.named()
        }

    def transactions(
        self,
        method: Union[str, TransactionSort] = TransactionSort.DATE_ASCENDING,
        today: Optional[DateLike] = None,
    ) -> list[Transaction]:
        """Transactions sorted or filtered by a method or picker label."""
        method = TransactionSort.from_label(method)
        return ordering.order_transactions(
            method, self._store.snapshot().transactions, today=today,
        )

    def goals(self, method: Union[str, GoalSort] = GoalSort.DATE_ASCENDING) -> list[Goal]:
        """Goals sorted by a method or picker label."""
        method = GoalSort.from_label(method)
        return ordering.order_goals(method, self._store.snapshot().goals)

    def goal_feasibility(
        self,
        goal_id: UUID,
        today: Optional[DateLike] = None,
    ) -> FeasibilityReport:
        """
        How achievable a goal is from the cashflow until its due date.

        Raises:
            QueryExecutionError: If the goal doesn't exist
        """
        today = normalize(today) if today is not None else current_date()
        snapshot = self._store.snapshot()

        goal = next((g for g in snapshot.goals if g.id == goal_id), None)
        if goal is None:
            logger.warning("goal_not_found", goal_id=str(goal_id))
            raise QueryExecutionError(f"Goal {goal_id} not found")

        effective, _ = ledger.resolve_range(ledger.feasibility_range(goal, today), today)
        total = ledger.balance(
            BalanceWindow.CUSTOM, snapshot.transactions, date_range=effective, today=today,
        )
        score = ledger.feasibility_score(goal, snapshot.transactions, today=today)

        return FeasibilityReport(
            goal_id=goal.id,
            date_range=effective,
            balance=total,
            remaining_amount=goal.remaining_amount,
            score=score,
            rating=ledger.rate_feasibility(score) if score is not None else None,
        )

    def upcoming(
        self,
        today: Optional[DateLike] = None,
        limit: int = 10,
    ) -> list[tuple[Transaction, date]]:
        """
        Next occurrence of each transaction, soonest first.

        Transactions with no occurrence left are left out.
        """
        today = normalize(today) if today is not None else current_date()
        pending = []
        for transaction in self._store.snapshot().transactions:
            upcoming_date = next_occurrence(transaction, today)
            if upcoming_date is not None:
                pending.append((transaction, upcoming_date))

        pending.sort(key=lambda pair: pair[1])
        return pending[:limit]

    def describe_balance(self, summary: BalanceSummary) -> str:
        """One-line description of what a balance covers."""
        if summary.window == BalanceWindow.CUSTOM and summary.date_range is not None:
            period = self._date_range_str(summary.date_range.start, summary.date_range.end)
        elif summary.window == BalanceWindow.DAILY:
            period = f"on {summary.computed_for.strftime('%d %b %Y')}"
        elif summary.window == BalanceWindow.WEEKLY:
            period = f"in week {summary.computed_for.isocalendar()[1]} of {summary.computed_for.year}"
        elif summary.window == BalanceWindow.MONTHLY:
            period = f"in {summary.computed_for.strftime('%B %Y')}"
        else:
            period = f"in {summary.computed_for.year}"

        return f"Balance {period}: {summary.rounded_balance}"

    def _date_range_str(self, date_from: date, date_to: date) -> str:
        """Format date range for description."""
        if date_from == date_to:
            return f"on {date_from.strftime('%d %b %Y')}"
        elif date_from.month == date_to.month and date_from.year == date_to.year:
            return f"from {date_from.strftime('%d')} to {date_to.strftime('%d %b %Y')}"
        elif date_from.year == date_to.year:
            return f"from {date_from.strftime('%d %b')} to {date_to.strftime('%d %b %Y')}"
        return f"from {date_from.strftime('%d %b %Y')} to {date_to.strftime('%d %b %Y')}"
