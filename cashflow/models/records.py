"""
Core Record Models for Cashflow

These models define the plain records that cross the engine boundary.
They are designed to:
1. Enforce the occurrence invariants at construction time
2. Normalize every date they receive
3. Serialize losslessly for the record store
4. Be immutable, so a snapshot can never change under the engine

DESIGN DECISION: Records are frozen. Edits replace a record by its
identifier instead of mutating it or matching it by value.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from cashflow.engine.dates import normalize


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecurrencePeriod(str, Enum):
    """How often a transaction repeats."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def from_label(cls, label: str) -> "RecurrencePeriod":
        """
        Map a picker label ("Never", "Monthly", ...) to a period.

        Raises ValueError for unknown labels: a wrong period changes the
        meaning of the record, so it is never defaulted.
        """
        key = (label or "").strip().lower()
        if key == "never":
            return cls.NONE
        return cls(key)


class Direction(str, Enum):
    """Cash inflow or outflow."""
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def from_label(cls, label: str) -> "Direction":
        key = (label or "").strip().lower()
        if key == "expenses":
            return cls.EXPENSE
        return cls(key)


def _normalize_date_input(value):
    """Strip time-of-day from datetimes before pydantic sees them."""
    if isinstance(value, date):
        return normalize(value)
    return value


# =============================================================================
# CORE RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A (possibly recurring) income or expense.

    The occurrence dates are expanded once, when the record is built,
    and stored with it. Reading a record back never re-expands.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Transaction name"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Unsigned amount; the direction carries the sign"
    )
    recurrence: RecurrencePeriod = Field(
        default=RecurrencePeriod.NONE,
        description="Recurrence period"
    )
    due_date: date = Field(
        ...,
        description="Date of the first occurrence"
    )
    end_date: date = Field(
        ...,
        description="Last date an occurrence may fall on (recurring only)"
    )
    occurrences: tuple[date, ...] = Field(
        ...,
        description="Every occurrence date, due date first"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name"
    )
    direction: Direction = Field(
        ...,
        description="Income or expense"
    )

    @field_validator('due_date', 'end_date', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        return _normalize_date_input(v)

    @field_validator('occurrences', mode='before')
    @classmethod
    def normalize_occurrences(cls, v):
        if isinstance(v, (list, tuple)):
            return tuple(_normalize_date_input(d) for d in v)
        return v

    @model_validator(mode='after')
    def validate_occurrences(self) -> 'Transaction':
        """Occurrences start at the due date and strictly increase."""
        if not self.occurrences:
            raise ValueError("A transaction needs at least one occurrence")

        if self.occurrences[0] != self.due_date:
            raise ValueError("First occurrence must equal the due date")

        for earlier, later in zip(self.occurrences, self.occurrences[1:]):
            if later <= earlier:
                raise ValueError("Occurrences must be strictly increasing")

        if self.recurrence == RecurrencePeriod.NONE:
            if len(self.occurrences) != 1:
                raise ValueError("A non-recurring transaction has exactly one occurrence")
        elif self.occurrences[-1] > max(self.end_date, self.due_date):
            raise ValueError("Occurrences cannot run past the end date")

        return self

    @property
    def is_recurring(self) -> bool:
        return self.recurrence != RecurrencePeriod.NONE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the direction applied: income adds, expense subtracts."""
        if self.direction == Direction.EXPENSE:
            return -self.amount
        return self.amount


class Goal(BaseModel):
    """
    A savings goal funded by contributions.

    Contributions may push the contributed amount past the target;
    the remaining amount is then negative and is NOT clamped.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique goal ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Goal name"
    )
    due_date: date = Field(
        ...,
        description="Date the goal should be achieved by"
    )
    target_amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount required to achieve the goal"
    )
    contributed_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount contributed so far"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name"
    )
    feasibility: Optional[Decimal] = Field(
        default=None,
        description="Feasibility score cached when the goal was saved"
    )

    @field_validator('due_date', mode='before')
    @classmethod
    def normalize_due_date(cls, v):
        return _normalize_date_input(v)

    @property
    def achieved(self) -> bool:
        return self.contributed_amount >= self.target_amount

    @property
    def remaining_amount(self) -> Decimal:
        return self.target_amount - self.contributed_amount


# =============================================================================
# DRAFTS - raw user input, never persisted
# =============================================================================

class TransactionDraft(BaseModel):
    """
    What an add/edit form hands over.

    Amount and labels are kept as the UI supplied them; the validator
    decides what they mean.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    amount: Union[str, Decimal, None] = None
    recurrence: str = "Never"
    due_date: date
    end_date: Optional[date] = None
    repeat_forever: bool = Field(
        default=False,
        description="Use the bounded 'forever' horizon instead of end_date"
    )
    category: str = ""
    direction: str = "Expense"

    @field_validator('due_date', 'end_date', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        return _normalize_date_input(v)


class GoalDraft(BaseModel):
    """What the add/edit goal form hands over."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    target_amount: Union[str, Decimal, None] = None
    contributed_amount: Union[str, Decimal, None] = None
    due_date: date
    category: str = ""

    @field_validator('due_date', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        return _normalize_date_input(v)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating a draft."""

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
