"""
Ledger Query Models

Closed enums for the selections the UI offers (balance window, sort
method) and the result models the query layer returns.

DESIGN DECISION: Picker strings are mapped to enums ONCE, at the
boundary. Unknown labels fall back to a documented default and are
logged; inside the engine only enum members circulate, so there is no
"unknown window" or "unknown sort" branch to reach.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = structlog.get_logger(__name__)


def _label_key(label: str) -> str:
    return " ".join((label or "").strip().lower().split())


# =============================================================================
# SELECTION ENUMS
# =============================================================================

class BalanceWindow(str, Enum):
    """
    Time windows a balance can be aggregated over.

    The named windows are evaluated against today; CUSTOM takes an
    explicit inclusive date range.
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"

    @classmethod
    def from_label(cls, label: Union[str, "BalanceWindow"]) -> "BalanceWindow":
        """Map a picker label to a window. Unknown labels -> DAILY."""
        if isinstance(label, cls):
            return label
        try:
            return cls(_label_key(label))
        except ValueError:
            logger.warning("unknown_balance_window", label=label, default=cls.DAILY.value)
            return cls.DAILY

    @classmethod
    def named(cls) -> list["BalanceWindow"]:
        """Windows that need no explicit range."""
        return [cls.DAILY, cls.WEEKLY, cls.MONTHLY, cls.YEARLY]


class TransactionSort(str, Enum):
    """Ways to sort or filter a transaction list."""
    UNSORTED = "unsorted"
    ALPHABETICAL = "alphabetical"
    REVERSE_ALPHABETICAL = "reverse_alphabetical"
    AMOUNT_ASCENDING = "amount_ascending"
    AMOUNT_DESCENDING = "amount_descending"
    DATE_ASCENDING = "date_ascending"
    DATE_DESCENDING = "date_descending"
    INCOME = "income"
    EXPENSES = "expenses"
    RECURRING = "recurring"
    NOT_RECURRING = "not_recurring"

    @classmethod
    def from_label(cls, label: Union[str, "TransactionSort"]) -> "TransactionSort":
        """Map a picker label to a method. Unknown labels -> DATE_ASCENDING."""
        return _from_sort_label(cls, _TRANSACTION_SORT_LABELS, label)


class GoalSort(str, Enum):
    """Ways to sort a goal list."""
    UNSORTED = "unsorted"
    ALPHABETICAL = "alphabetical"
    REVERSE_ALPHABETICAL = "reverse_alphabetical"
    AMOUNT_ASCENDING = "amount_ascending"
    AMOUNT_DESCENDING = "amount_descending"
    DATE_ASCENDING = "date_ascending"
    DATE_DESCENDING = "date_descending"
    AMOUNT_CONTRIBUTED = "amount_contributed"
    AMOUNT_CONTRIBUTED_REVERSED = "amount_contributed_reversed"
    AMOUNT_REMAINING = "amount_remaining"
    AMOUNT_REMAINING_REVERSED = "amount_remaining_reversed"

    @classmethod
    def from_label(cls, label: Union[str, "GoalSort"]) -> "GoalSort":
        """Map a picker label to a method. Unknown labels -> DATE_ASCENDING."""
        return _from_sort_label(cls, _GOAL_SORT_LABELS, label)


# Labels shown by the transaction and goal list pickers
_TRANSACTION_SORT_LABELS = {
    "none": TransactionSort.UNSORTED,
    "name: a to z": TransactionSort.ALPHABETICAL,
    "name: z to a": TransactionSort.REVERSE_ALPHABETICAL,
    "amount: low to high": TransactionSort.AMOUNT_ASCENDING,
    "amount: high to low": TransactionSort.AMOUNT_DESCENDING,
    "date: closest to furthest": TransactionSort.DATE_ASCENDING,
    "date: furthest to closest": TransactionSort.DATE_DESCENDING,
    "income": TransactionSort.INCOME,
    "expenses": TransactionSort.EXPENSES,
    "recurring": TransactionSort.RECURRING,
    "non recurring": TransactionSort.NOT_RECURRING,
}

_GOAL_SORT_LABELS = {
    "none": GoalSort.UNSORTED,
    "name: a to z": GoalSort.ALPHABETICAL,
    "name: z to a": GoalSort.REVERSE_ALPHABETICAL,
    "total amount: low to high": GoalSort.AMOUNT_ASCENDING,
    "total amount: high to low": GoalSort.AMOUNT_DESCENDING,
    "date: closest to furthest": GoalSort.DATE_ASCENDING,
    "date: furthest to closest": GoalSort.DATE_DESCENDING,
    "contributed: low to high": GoalSort.AMOUNT_CONTRIBUTED,
    "contributed: high to low": GoalSort.AMOUNT_CONTRIBUTED_REVERSED,
    "remaining: low to high": GoalSort.AMOUNT_REMAINING,
    "remaining: high to low": GoalSort.AMOUNT_REMAINING_REVERSED,
}


def _from_sort_label(enum_cls, labels: dict, label):
    if isinstance(label, enum_cls):
        return label
    key = _label_key(label)
    if key in labels:
        return labels[key]
    try:
        return enum_cls(key.replace(" ", "_"))
    except ValueError:
        logger.warning(
            "unknown_sort_method",
            label=label,
            kind=enum_cls.__name__,
            default=enum_cls.DATE_ASCENDING.value,
        )
        return enum_cls.DATE_ASCENDING


class FeasibilityRating(str, Enum):
    """
    Achievability tiers for a goal's feasibility score.

    Thresholds (score s):
        s > 10          EXTREMELY_ACHIEVABLE
        5 < s <= 10     VERY_ACHIEVABLE
        3 < s <= 5      QUITE_ACHIEVABLE
        1.5 < s <= 3    ACHIEVABLE
        1 <= s <= 1.5   ACHIEVABLE_WITH_SAVINGS
        0.5 <= s < 1    DIFFICULT
        0 < s < 0.5     UNREALISTIC
        otherwise       NEGATIVE_CASHFLOW
    """
    EXTREMELY_ACHIEVABLE = "extremely_achievable"
    VERY_ACHIEVABLE = "very_achievable"
    QUITE_ACHIEVABLE = "quite_achievable"
    ACHIEVABLE = "achievable"
    ACHIEVABLE_WITH_SAVINGS = "achievable_with_savings"
    DIFFICULT = "difficult"
    UNREALISTIC = "unrealistic"
    NEGATIVE_CASHFLOW = "negative_cashflow"

    @property
    def message(self) -> str:
        return _RATING_MESSAGES[self]


_RATING_MESSAGES = {
    FeasibilityRating.EXTREMELY_ACHIEVABLE: "This goal is extremely achievable",
    FeasibilityRating.VERY_ACHIEVABLE: "This goal is very achievable",
    FeasibilityRating.QUITE_ACHIEVABLE: "This goal is quite achievable",
    FeasibilityRating.ACHIEVABLE: "This goal is achievable",
    FeasibilityRating.ACHIEVABLE_WITH_SAVINGS: (
        "This goal is achievable provided you contribute the majority of your savings to it"
    ),
    FeasibilityRating.DIFFICULT: (
        "This goal may be difficult to achieve if you don't change your spending habits"
    ),
    FeasibilityRating.UNREALISTIC: (
        "This may be an unrealistic goal for you to set. Consider changing your spending "
        "habits or increasing the timeframe available to achieve this goal"
    ),
    FeasibilityRating.NEGATIVE_CASHFLOW: (
        "Try to achieve a positive balance in this timeframe before you set goals"
    ),
}


# =============================================================================
# RANGE AND RESULT MODELS
# =============================================================================

class DateRange(BaseModel):
    """
    An inclusive [start, end] range of calendar dates.

    A reversed range (start > end) is representable on purpose: the
    aggregator decides what to do with it.
    """
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @property
    def is_valid(self) -> bool:
        return self.start <= self.end

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def single_day(cls, day: date) -> "DateRange":
        return cls(start=day, end=day)


class BalanceSummary(BaseModel):
    """A balance over one window, ready for display."""

    window: BalanceWindow
    computed_for: date = Field(
        ...,
        description="The 'today' the window was evaluated against"
    )
    date_range: Optional[DateRange] = Field(
        default=None,
        description="Effective range for CUSTOM windows"
    )
    balance: Decimal = Field(
        ...,
        description="Exact signed balance"
    )
    rounded_balance: Decimal = Field(
        ...,
        description="Balance rounded to 2 decimal places"
    )
    used_fallback: bool = Field(
        default=False,
        description="True when a reversed custom range was replaced by today"
    )
    occurrence_count: int = Field(
        default=0,
        ge=0,
        description="Number of occurrences inside the window"
    )

    @property
    def is_positive(self) -> bool:
        return self.balance >= 0


class FeasibilityReport(BaseModel):
    """How achievable a goal is given the cashflow until its due date."""

    goal_id: UUID
    date_range: DateRange
    balance: Decimal = Field(
        ...,
        description="Balance over [today, due date]"
    )
    remaining_amount: Decimal
    score: Optional[Decimal] = Field(
        default=None,
        description="None once the goal is achieved"
    )
    rating: Optional[FeasibilityRating] = None

    @model_validator(mode='after')
    def validate_rating(self) -> 'FeasibilityReport':
        if self.score is None and self.rating is not None:
            raise ValueError("An achieved goal has no feasibility rating")
        return self

    @property
    def message(self) -> str:
        if self.rating is None:
            return "This goal has been achieved"
        return self.rating.message
