"""
Shared fixtures.

Every engine call in the tests passes an explicit ``today`` so results
never depend on the day the suite runs.
"""

from datetime import date
from decimal import Decimal

import pytest

from cashflow.engine.recurrence import expand
from cashflow.models.records import Direction, Goal, RecurrencePeriod, Transaction
from cashflow.services.storage import InMemoryRecordStore

# A Wednesday in ISO week 11 (Mon 11 Mar - Sun 17 Mar 2024)
TODAY = date(2024, 3, 13)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def make_transaction():
    """Factory for transactions with expanded occurrences."""

    def _make(
        name="Salary",
        amount="100",
        direction=Direction.INCOME,
        due=TODAY,
        recurrence=RecurrencePeriod.NONE,
        end=None,
        category="Work",
    ) -> Transaction:
        end = end or due
        return Transaction(
            name=name,
            amount=Decimal(amount),
            recurrence=recurrence,
            due_date=due,
            end_date=end,
            occurrences=expand(due, recurrence, end),
            category=category,
            direction=direction,
        )

    return _make


@pytest.fixture
def make_goal():
    """Factory for goals."""

    def _make(
        name="Holiday",
        target="1000",
        contributed="0",
        due=date(2024, 3, 31),
        category="Travel",
    ) -> Goal:
        return Goal(
            name=name,
            due_date=due,
            target_amount=Decimal(target),
            contributed_amount=Decimal(contributed),
            category=category,
        )

    return _make


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()
