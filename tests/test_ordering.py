"""Tests for the sort/filter engine."""

from datetime import date
from decimal import Decimal

import pytest

from cashflow.engine import ordering
from cashflow.engine.ordering import FAR_PAST, next_occurrence_key, order_goals, order_transactions
from cashflow.models.ledger import GoalSort, TransactionSort
from cashflow.models.records import Direction, RecurrencePeriod


@pytest.fixture
def transactions(make_transaction):
    return [
        make_transaction(name="Rent", amount="900", direction=Direction.EXPENSE,
                         due=date(2024, 1, 20), recurrence=RecurrencePeriod.MONTHLY,
                         end=date(2024, 12, 31)),
        make_transaction(name="Bonus", amount="1500", due=date(2024, 3, 14)),
        make_transaction(name="Netflix", amount="15.99", direction=Direction.EXPENSE,
                         due=date(2024, 1, 1)),
        make_transaction(name="Salary", amount="2500", due=date(2024, 2, 25),
                         recurrence=RecurrencePeriod.MONTHLY, end=date(2024, 12, 31)),
        make_transaction(name="Bike", amount="900", direction=Direction.EXPENSE,
                         due=date(2024, 4, 2)),
    ]


@pytest.fixture
def goals(make_goal):
    return [
        make_goal(name="Car", target="8000", contributed="500", due=date(2025, 6, 1)),
        make_goal(name="Holiday", target="1000", contributed="900", due=date(2024, 7, 1)),
        make_goal(name="Laptop", target="2000", contributed="0", due=date(2024, 5, 1)),
    ]


def names(items):
    return [item.name for item in items]


class TestDispatchTables:
    """Every method is handled exactly once."""

    def test_every_transaction_method_is_dispatched(self):
        sorts = set(ordering._TRANSACTION_SORTS)
        filters = set(ordering._TRANSACTION_FILTERS)
        assert sorts | filters == set(TransactionSort)
        assert not sorts & filters

    def test_every_goal_method_is_dispatched(self):
        assert set(ordering._GOAL_SORTS) == set(GoalSort)


class TestTransactionSorting:
    """Tests for transaction sorts."""

    def test_alphabetical(self, transactions, today):
        result = order_transactions(TransactionSort.ALPHABETICAL, transactions, today)
        assert names(result) == ["Bike", "Bonus", "Netflix", "Rent", "Salary"]

        result = order_transactions(TransactionSort.REVERSE_ALPHABETICAL, transactions, today)
        assert names(result) == ["Salary", "Rent", "Netflix", "Bonus", "Bike"]

    def test_amount_ties_keep_insertion_order(self, transactions, today):
        """Test that sorting is stable in both directions."""
        ascending = order_transactions(TransactionSort.AMOUNT_ASCENDING, transactions, today)
        assert names(ascending) == ["Netflix", "Rent", "Bike", "Bonus", "Salary"]

        descending = order_transactions(TransactionSort.AMOUNT_DESCENDING, transactions, today)
        assert names(descending) == ["Salary", "Bonus", "Rent", "Bike", "Netflix"]

    def test_date_sort_uses_next_occurrence(self, transactions, today):
        """Test that recurring items sort by their next date, exhausted ones first."""
        result = order_transactions(TransactionSort.DATE_ASCENDING, transactions, today)
        # Netflix is exhausted; Bonus 14 Mar; Rent 20 Mar; Salary 25 Mar; Bike 2 Apr
        assert names(result) == ["Netflix", "Bonus", "Rent", "Salary", "Bike"]

        result = order_transactions(TransactionSort.DATE_DESCENDING, transactions, today)
        assert names(result) == ["Bike", "Salary", "Rent", "Bonus", "Netflix"]

    def test_next_occurrence_key(self, transactions, today):
        rent, _, netflix, _, _ = transactions
        assert next_occurrence_key(rent, today) == date(2024, 3, 20)
        assert next_occurrence_key(netflix, today) == FAR_PAST

    @pytest.mark.parametrize("method", list(TransactionSort))
    def test_sorting_is_idempotent(self, transactions, today, method):
        once = order_transactions(method, transactions, today)
        assert order_transactions(method, once, today) == once

    @pytest.mark.parametrize("method", list(TransactionSort))
    def test_input_is_not_mutated(self, transactions, today, method):
        before = list(transactions)
        result = order_transactions(method, transactions, today)
        assert transactions == before
        assert result is not transactions


class TestTransactionFilters:
    """Tests for transaction filters."""

    def test_unsorted_keeps_order(self, transactions, today):
        result = order_transactions(TransactionSort.UNSORTED, transactions, today)
        assert result == transactions

    def test_direction_filters(self, transactions, today):
        assert names(order_transactions(TransactionSort.INCOME, transactions, today)) == [
            "Bonus", "Salary",
        ]
        assert names(order_transactions(TransactionSort.EXPENSES, transactions, today)) == [
            "Rent", "Netflix", "Bike",
        ]

    def test_recurrence_filters(self, transactions, today):
        assert names(order_transactions(TransactionSort.RECURRING, transactions, today)) == [
            "Rent", "Salary",
        ]
        assert names(order_transactions(TransactionSort.NOT_RECURRING, transactions, today)) == [
            "Bonus", "Netflix", "Bike",
        ]

    def test_empty_input(self, today):
        for method in TransactionSort:
            assert order_transactions(method, [], today) == []


class TestGoalSorting:
    """Tests for goal sorts."""

    def test_unsorted_keeps_order(self, goals):
        assert order_goals(GoalSort.UNSORTED, goals) == goals

    def test_by_target_amount(self, goals):
        assert names(order_goals(GoalSort.AMOUNT_ASCENDING, goals)) == ["Holiday", "Laptop", "Car"]
        assert names(order_goals(GoalSort.AMOUNT_DESCENDING, goals)) == ["Car", "Laptop", "Holiday"]

    def test_by_due_date(self, goals):
        assert names(order_goals(GoalSort.DATE_ASCENDING, goals)) == ["Laptop", "Holiday", "Car"]

    def test_by_contributed_amount(self, goals):
        assert names(order_goals(GoalSort.AMOUNT_CONTRIBUTED, goals)) == ["Laptop", "Car", "Holiday"]
        assert names(order_goals(GoalSort.AMOUNT_CONTRIBUTED_REVERSED, goals)) == [
            "Holiday", "Car", "Laptop",
        ]

    def test_by_remaining_amount(self, goals, make_goal):
        """Test remaining sorts, including an over-funded goal."""
        overfunded = make_goal(name="Gift", target="100", contributed="150")
        result = order_goals(GoalSort.AMOUNT_REMAINING, goals + [overfunded])
        assert names(result) == ["Gift", "Holiday", "Laptop", "Car"]
        assert result[0].remaining_amount == Decimal("-50")

        reversed_result = order_goals(GoalSort.AMOUNT_REMAINING_REVERSED, goals)
        assert names(reversed_result) == ["Car", "Laptop", "Holiday"]

    @pytest.mark.parametrize("method", list(GoalSort))
    def test_sorting_is_idempotent(self, goals, method):
        once = order_goals(method, goals)
        assert order_goals(method, once) == once
