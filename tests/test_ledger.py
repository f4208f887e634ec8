"""Tests for the ledger aggregator and goal feasibility."""

from datetime import date
from decimal import Decimal

import pytest

from cashflow.engine.ledger import (
    balance,
    feasibility_range,
    feasibility_score,
    rate_feasibility,
    resolve_range,
    round_money,
    window_occurrences,
)
from cashflow.models.ledger import BalanceWindow, DateRange, FeasibilityRating
from cashflow.models.records import Direction, RecurrencePeriod


class TestRounding:
    def test_round_money_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")
        assert round_money(Decimal("10")) == Decimal("10.00")


class TestNamedWindows:
    """Tests for the windows evaluated against today."""

    def test_daily(self, make_transaction, today):
        """Test that only today's occurrences count."""
        transactions = [
            make_transaction(amount="50", due=today),
            make_transaction(amount="70", due=date(2024, 3, 14)),
        ]
        assert balance(BalanceWindow.DAILY, transactions, today=today) == Decimal("50")

    def test_weekly_spans_a_month_boundary(self, make_transaction):
        """Test a week that straddles two months, and the month that doesn't."""
        today = date(2024, 5, 1)  # Wednesday, week Mon 29 Apr - Sun 5 May
        transactions = [
            make_transaction(
                name="Salary",
                amount="100",
                due=today,
                recurrence=RecurrencePeriod.WEEKLY,
                end=date(2024, 5, 7),
            ),
            make_transaction(
                name="Groceries",
                amount="40",
                direction=Direction.EXPENSE,
                due=date(2024, 4, 30),
            ),
        ]

        assert balance(BalanceWindow.WEEKLY, transactions, today=today) == Decimal("60")
        assert balance(BalanceWindow.MONTHLY, transactions, today=today) == Decimal("100")

    def test_weekly_requires_same_year(self, make_transaction):
        """Test that week 1 of another year is not this week."""
        today = date(2024, 1, 3)
        transactions = [
            make_transaction(amount="10", due=date(2024, 1, 1)),
            make_transaction(amount="99", due=date(2025, 1, 1)),
        ]
        assert date(2025, 1, 1).isocalendar()[1] == today.isocalendar()[1]
        assert balance(BalanceWindow.WEEKLY, transactions, today=today) == Decimal("10")

    def test_weekly_compares_calendar_year_not_iso_year(self, make_transaction):
        """Test that week 1 at both ends of one calendar year is the same week."""
        today = date(2024, 12, 30)
        transactions = [
            make_transaction(amount="10", due=date(2024, 1, 1)),
            make_transaction(amount="5", due=date(2024, 12, 30)),
        ]
        assert today.isocalendar()[:2] == (2025, 1)
        assert date(2024, 1, 1).isocalendar()[:2] == (2024, 1)
        assert balance(BalanceWindow.WEEKLY, transactions, today=today) == Decimal("15")

    def test_monthly_and_yearly(self, make_transaction, today):
        """Test month and year membership of a monthly schedule."""
        rent = make_transaction(
            amount="900",
            direction=Direction.EXPENSE,
            due=date(2024, 1, 1),
            recurrence=RecurrencePeriod.MONTHLY,
            end=date(2025, 6, 1),
        )
        assert balance(BalanceWindow.MONTHLY, [rent], today=today) == Decimal("-900")
        assert balance(BalanceWindow.YEARLY, [rent], today=today) == Decimal("-10800")

    def test_empty_ledger(self, today):
        for window in BalanceWindow:
            assert balance(window, [], today=today) == Decimal("0")

    def test_every_occurrence_counts(self, make_transaction, today):
        """Test that a daily schedule contributes once per day."""
        coffee = make_transaction(
            amount="3.10",
            direction=Direction.EXPENSE,
            due=date(2024, 3, 11),
            recurrence=RecurrencePeriod.DAILY,
            end=date(2024, 3, 20),
        )
        pairs = window_occurrences(BalanceWindow.WEEKLY, [coffee], today=today)
        assert len(pairs) == 7
        assert balance(BalanceWindow.WEEKLY, [coffee], today=today) == Decimal("-21.70")


class TestCustomWindow:
    """Tests for explicit ranges."""

    def test_range_is_inclusive(self, make_transaction, today):
        transactions = [
            make_transaction(amount="1", due=date(2024, 3, 5)),
            make_transaction(amount="2", due=date(2024, 3, 10)),
            make_transaction(amount="4", due=date(2024, 3, 11)),
        ]
        rng = DateRange(start=date(2024, 3, 5), end=date(2024, 3, 10))
        assert balance(BalanceWindow.CUSTOM, transactions, rng, today=today) == Decimal("3")

    def test_single_day_range_is_valid(self, make_transaction, today):
        """Test that start == end is a real range, not a fallback."""
        rng = DateRange.single_day(date(2024, 3, 5))
        effective, used_fallback = resolve_range(rng, today)
        assert effective == rng
        assert used_fallback is False

    def test_reversed_range_falls_back_to_today(self, make_transaction, today):
        """Test a reversed range is replaced by [today, today] without raising."""
        transactions = [
            make_transaction(amount="5", due=date(2024, 3, 7)),
            make_transaction(amount="8", due=today),
        ]
        rng = DateRange(start=date(2024, 3, 10), end=date(2024, 3, 5))

        effective, used_fallback = resolve_range(rng, today)
        assert used_fallback is True
        assert effective == DateRange.single_day(today)
        assert balance(BalanceWindow.CUSTOM, transactions, rng, today=today) == Decimal("8")

    def test_missing_range_falls_back_to_today(self, make_transaction, today):
        transactions = [make_transaction(amount="8", due=today)]
        assert balance(BalanceWindow.CUSTOM, transactions, None, today=today) == Decimal("8")


class TestAdditivity:
    """balance(A + B) == balance(A) + balance(B) for disjoint sets."""

    @pytest.mark.parametrize("window", list(BalanceWindow))
    def test_balance_is_additive(self, make_transaction, today, window):
        a = [
            make_transaction(
                name="Salary", amount="2500", due=date(2024, 1, 25),
                recurrence=RecurrencePeriod.MONTHLY, end=date(2024, 12, 31),
            ),
            make_transaction(name="Lunch", amount="12.40", direction=Direction.EXPENSE, due=today),
        ]
        b = [
            make_transaction(
                name="Bus", amount="2.75", direction=Direction.EXPENSE, due=date(2024, 3, 1),
                recurrence=RecurrencePeriod.DAILY, end=date(2024, 4, 30),
            ),
            make_transaction(
                name="Insurance", amount="480", direction=Direction.EXPENSE, due=date(2023, 3, 13),
                recurrence=RecurrencePeriod.YEARLY, end=date(2027, 1, 1),
            ),
        ]
        rng = DateRange(start=date(2024, 3, 1), end=date(2024, 4, 15))

        combined = balance(window, a + b, rng, today=today)
        assert combined == balance(window, a, rng, today=today) + balance(window, b, rng, today=today)


class TestFeasibility:
    """Tests for goal feasibility scores."""

    def test_positive_cashflow(self, make_transaction, make_goal, today):
        """Test ratio of projected balance to the remaining amount."""
        goal = make_goal(target="1000", due=date(2024, 3, 31))
        transactions = [make_transaction(amount="2000", due=date(2024, 3, 20))]

        score = feasibility_score(goal, transactions, today=today)
        assert score == Decimal("2.00")
        assert rate_feasibility(score) == FeasibilityRating.ACHIEVABLE

    def test_only_cashflow_before_due_date_counts(self, make_transaction, make_goal, today):
        goal = make_goal(target="1000", due=date(2024, 3, 31))
        transactions = [
            make_transaction(amount="500", due=date(2024, 3, 31)),
            make_transaction(amount="9000", due=date(2024, 4, 1)),
            make_transaction(amount="9000", due=date(2024, 3, 12)),
        ]
        assert feasibility_score(goal, transactions, today=today) == Decimal("0.50")

    def test_negative_balance_inverts_ratio(self, make_transaction, make_goal, today):
        """Test that a negative balance gives 1 / ratio."""
        goal = make_goal(target="1000", due=date(2024, 3, 31))
        transactions = [
            make_transaction(amount="500", direction=Direction.EXPENSE, due=date(2024, 3, 20)),
        ]

        score = feasibility_score(goal, transactions, today=today)
        assert score == Decimal("-2.00")
        assert rate_feasibility(score) == FeasibilityRating.NEGATIVE_CASHFLOW

    def test_zero_balance(self, make_goal, today):
        goal = make_goal(target="1000")
        score = feasibility_score(goal, [], today=today)
        assert score == Decimal("0.00")
        assert rate_feasibility(score) == FeasibilityRating.NEGATIVE_CASHFLOW

    def test_achieved_goal_has_no_score(self, make_transaction, make_goal, today):
        goal = make_goal(target="1000", contributed="1100")
        transactions = [make_transaction(amount="2000", due=date(2024, 3, 20))]
        assert feasibility_score(goal, transactions, today=today) is None

    def test_past_due_goal_uses_today(self, make_transaction, make_goal, today):
        """Test a goal past its due date is judged on today's cashflow."""
        goal = make_goal(target="100", due=date(2024, 3, 1))
        transactions = [
            make_transaction(amount="50", due=today),
            make_transaction(amount="900", due=date(2024, 3, 5)),
        ]
        assert feasibility_range(goal, today).is_valid is False
        assert feasibility_score(goal, transactions, today=today) == Decimal("0.50")

    @pytest.mark.parametrize("score, rating", [
        ("10.01", FeasibilityRating.EXTREMELY_ACHIEVABLE),
        ("10", FeasibilityRating.VERY_ACHIEVABLE),
        ("5.01", FeasibilityRating.VERY_ACHIEVABLE),
        ("5", FeasibilityRating.QUITE_ACHIEVABLE),
        ("3", FeasibilityRating.ACHIEVABLE),
        ("1.51", FeasibilityRating.ACHIEVABLE),
        ("1.5", FeasibilityRating.ACHIEVABLE_WITH_SAVINGS),
        ("1", FeasibilityRating.ACHIEVABLE_WITH_SAVINGS),
        ("0.99", FeasibilityRating.DIFFICULT),
        ("0.5", FeasibilityRating.DIFFICULT),
        ("0.49", FeasibilityRating.UNREALISTIC),
        ("0", FeasibilityRating.NEGATIVE_CASHFLOW),
        ("-3", FeasibilityRating.NEGATIVE_CASHFLOW),
    ])
    def test_rating_thresholds(self, score, rating):
        assert rate_feasibility(Decimal(score)) == rating
