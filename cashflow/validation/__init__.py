"""Validation package."""

from cashflow.validation.validator import (
    RecordValidationError,
    RecordValidator,
    parse_amount,
)

__all__ = ["RecordValidationError", "RecordValidator", "parse_amount"]
