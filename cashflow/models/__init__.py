"""
Data Models Package

This package contains all Pydantic models used in the Cashflow system.
Every record crossing the engine boundary conforms to these schemas.
"""

from cashflow.models.records import (
    Direction,
    Goal,
    GoalDraft,
    RecurrencePeriod,
    Transaction,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)
from cashflow.models.ledger import (
    BalanceSummary,
    BalanceWindow,
    DateRange,
    FeasibilityRating,
    FeasibilityReport,
    GoalSort,
    TransactionSort,
)
from cashflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Direction",
    "Goal",
    "GoalDraft",
    "RecurrencePeriod",
    "Transaction",
    "TransactionDraft",
    "ValidationIssue",
    "ValidationResult",
    # Ledger query models
    "BalanceSummary",
    "BalanceWindow",
    "DateRange",
    "FeasibilityRating",
    "FeasibilityReport",
    "GoalSort",
    "TransactionSort",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
