"""
Draft Validation

DESIGN DECISION: Everything the UI hands over is validated once, here,
before a record is built:
- Labels are mapped to enums (an unknown recurrence or direction is an
  error, because it would change what the record means)
- Amounts are parsed; absent or unparseable input counts as zero and is
  reported as a warning
- Dates are checked against each other and against the max horizon

IMPORTANT: Validation never silently fixes a record. It reports issues;
the flows refuse to save a draft with error-level issues.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from cashflow.config import EngineSettings, get_settings
from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.engine.ledger import round_money
from cashflow.engine.recurrence import forever_end_date
from cashflow.models.records import (
    Direction,
    Goal,
    GoalDraft,
    RecurrencePeriod,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)

AmountInput = Union[str, Decimal, int, float, None]

# Characters the amount fields tolerate around the digits
_AMOUNT_NOISE = str.maketrans("", "", " ,$")


class RecordValidationError(Exception):
    """A draft failed validation and was not saved."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(i.message for i in result.issues if i.severity == "error")
        super().__init__(f"Validation failed: {messages}")


def _is_blank(value: AmountInput) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _try_parse(value: AmountInput) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value).translate(_AMOUNT_NOISE))
        except InvalidOperation:
            return None
    if not parsed.is_finite():
        return None
    try:
        return round_money(parsed)
    except InvalidOperation:
        # Too many digits to hold at 2 decimal places
        return None


def parse_amount(value: AmountInput) -> Decimal:
    """
    Parse user input to an amount rounded to 2 decimal places.

    Absent or unparseable input is treated as zero.
    """
    parsed = _try_parse(value)
    return parsed if parsed is not None else Decimal("0.00")


class RecordValidator:
    """Validates transaction drafts, goal drafts and contributions."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or get_settings().engine

    # -- helpers ----------------------------------------------------------------

    def max_end_date(self, today: date) -> date:
        """Latest acceptable end date."""
        return today + timedelta(days=self._settings.max_horizon_days)

    def effective_end_date(self, draft: TransactionDraft, today: Optional[DateLike] = None) -> date:
        """
        End date a draft expands to.

        repeat_forever uses the bounded horizon; non-recurring
        transactions end on their due date.
        """
        today = normalize(today) if today is not None else current_date()
        period = RecurrencePeriod.from_label(draft.recurrence)
        if period == RecurrencePeriod.NONE:
            return draft.due_date
        if draft.repeat_forever:
            return forever_end_date(today, self._settings.forever_horizon_years)
        return draft.end_date or draft.due_date

    def _check_amount(
        self,
        field: str,
        value: AmountInput,
        issues: list[ValidationIssue],
        required: bool = True,
    ) -> Decimal:
        """Append amount issues and return the parsed amount."""
        if _is_blank(value):
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field.replace('_', ' ').capitalize()} is required",
                    severity="error",
                ))
            return Decimal("0.00")

        parsed = _try_parse(value)
        if parsed is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"'{value}' is not a number and will be treated as zero",
                severity="warning",
                suggested_fix="Enter digits only, e.g. 12.50",
            ))
            return Decimal("0.00")

        if parsed < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field.replace('_', ' ').capitalize()} cannot be negative",
                severity="error",
            ))
        return parsed

    @staticmethod
    def _require_text(field: str, value: str, issues: list[ValidationIssue]) -> None:
        if not value or not value.strip():
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.capitalize()} is required",
                severity="error",
            ))

    @staticmethod
    def _result(issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    # -- transactions -----------------------------------------------------------

    def validate_transaction(
        self,
        draft: TransactionDraft,
        today: Optional[DateLike] = None,
    ) -> ValidationResult:
        """
        Validate a transaction draft.

        Checks:
        - Name, category and amount present
        - Recurrence and direction labels known
        - Recurring: due date before end date, end date within horizon
        """
        today = normalize(today) if today is not None else current_date()
        issues: list[ValidationIssue] = []

        self._require_text("name", draft.name, issues)
        self._require_text("category", draft.category, issues)

        amount = self._check_amount("amount", draft.amount, issues)
        if amount == 0 and not any(i.field == "amount" and i.severity == "error" for i in issues):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero; this transaction won't change any balance",
                severity="warning",
            ))

        try:
            Direction.from_label(draft.direction)
        except ValueError:
            issues.append(ValidationIssue(
                field="direction",
                issue_type="invalid_value",
                message=f"Unknown direction '{draft.direction}'",
                severity="error",
                suggested_fix="Choose Income or Expense",
            ))

        try:
            period = RecurrencePeriod.from_label(draft.recurrence)
        except ValueError:
            issues.append(ValidationIssue(
                field="recurrence",
                issue_type="invalid_value",
                message=f"Unknown recurrence '{draft.recurrence}'",
                severity="error",
                suggested_fix="Choose Never, Daily, Weekly, Fortnightly, Monthly or Yearly",
            ))
            return self._result(issues)

        if period != RecurrencePeriod.NONE:
            if draft.end_date is None and not draft.repeat_forever:
                issues.append(ValidationIssue(
                    field="end_date",
                    issue_type="missing",
                    message="A recurring transaction needs an end date",
                    severity="error",
                    suggested_fix="Pick an end date or repeat forever",
                ))
                return self._result(issues)

            end = self.effective_end_date(draft, today)
            if draft.due_date >= end:
                issues.append(ValidationIssue(
                    field="end_date",
                    issue_type="inconsistent",
                    message="Transaction date needs to be before the end date",
                    severity="error",
                ))
            if end >= self.max_end_date(today):
                issues.append(ValidationIssue(
                    field="end_date",
                    issue_type="out_of_range",
                    message="Date is too far in the future",
                    severity="error",
                    suggested_fix=f"Pick an end date before {self.max_end_date(today)}",
                ))

        return self._result(issues)

    # -- goals ------------------------------------------------------------------

    def validate_goal(
        self,
        draft: GoalDraft,
        today: Optional[DateLike] = None,
        is_new: bool = True,
    ) -> ValidationResult:
        """
        Validate a goal draft.

        Checks:
        - Name, category and target amount present
        - Due date is not today
        - A new goal is not already achieved
        """
        today = normalize(today) if today is not None else current_date()
        issues: list[ValidationIssue] = []

        self._require_text("name", draft.name, issues)
        self._require_text("category", draft.category, issues)

        target = self._check_amount("target_amount", draft.target_amount, issues)
        contributed = self._check_amount(
            "contributed_amount", draft.contributed_amount, issues, required=False,
        )

        if draft.due_date == today:
            issues.append(ValidationIssue(
                field="due_date",
                issue_type="invalid_value",
                message="Goal needs a due date after today",
                severity="error",
            ))
        elif draft.due_date < today:
            issues.append(ValidationIssue(
                field="due_date",
                issue_type="suspicious_date",
                message=f"Due date ({draft.due_date}) is in the past",
                severity="warning",
                suggested_fix="Feasibility will only consider today's cashflow",
            ))

        if is_new and not _is_blank(draft.target_amount) and contributed >= target:
            issues.append(ValidationIssue(
                field="contributed_amount",
                issue_type="inconsistent",
                message="This goal has already been achieved",
                severity="error",
                suggested_fix="Lower the contributed amount or raise the target",
            ))

        return self._result(issues)

    def validate_contribution(self, goal: Goal, amount: AmountInput) -> ValidationResult:
        """A contribution must be a positive amount."""
        issues: list[ValidationIssue] = []

        parsed = self._check_amount("amount", amount, issues)
        if parsed == 0 and not any(i.severity == "error" for i in issues):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Contribution must be greater than zero",
                severity="error",
            ))

        if goal.achieved:
            issues.append(ValidationIssue(
                field="goal",
                issue_type="already_achieved",
                message=f"'{goal.name}' has already been achieved",
                severity="warning",
            ))

        return self._result(issues)

    # -- presentation -----------------------------------------------------------

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary of validation results to show next to the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
