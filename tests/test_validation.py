"""Tests for draft validation and amount parsing."""

from datetime import date
from decimal import Decimal

import pytest

from cashflow.models.records import GoalDraft, TransactionDraft
from cashflow.validation import RecordValidationError, RecordValidator, parse_amount


@pytest.fixture
def validator():
    return RecordValidator()


def transaction_draft(**overrides) -> TransactionDraft:
    fields = dict(
        name="Rent",
        amount="950",
        recurrence="Monthly",
        due_date=date(2024, 3, 1),
        end_date=date(2024, 12, 1),
        category="Housing",
        direction="Expense",
    )
    fields.update(overrides)
    return TransactionDraft(**fields)


def goal_draft(**overrides) -> GoalDraft:
    fields = dict(
        name="Holiday",
        target_amount="1000",
        contributed_amount="0",
        due_date=date(2024, 8, 1),
        category="Travel",
    )
    fields.update(overrides)
    return GoalDraft(**fields)


def fields_with(result, severity):
    return {i.field for i in result.issues if i.severity == severity}


class TestParseAmount:
    """Tests for turning user input into amounts."""

    @pytest.mark.parametrize("text, expected", [
        ("12.5", Decimal("12.50")),
        ("12.345", Decimal("12.35")),
        (" 1,200 ", Decimal("1200.00")),
        ("$40", Decimal("40.00")),
        (Decimal("7"), Decimal("7.00")),
    ])
    def test_parses_numbers(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        None, "", "   ", "abc", "NaN", "Infinity", "1e30", "9" * 30,
    ])
    def test_absent_or_unparseable_is_zero(self, text):
        assert parse_amount(text) == Decimal("0.00")


class TestTransactionValidation:
    """Tests for transaction drafts."""

    def test_valid_recurring_draft(self, validator, today):
        result = validator.validate_transaction(transaction_draft(), today)
        assert result.is_valid is True
        assert result.issues == []

    def test_valid_one_off_without_end_date(self, validator, today):
        draft = transaction_draft(recurrence="Never", end_date=None)
        assert validator.validate_transaction(draft, today).is_valid is True

    def test_required_fields(self, validator, today):
        draft = transaction_draft(name=" ", category="", amount="")
        result = validator.validate_transaction(draft, today)

        assert result.is_valid is False
        assert fields_with(result, "error") == {"name", "category", "amount"}

    def test_unparseable_amount_is_a_warning(self, validator, today):
        result = validator.validate_transaction(transaction_draft(amount="ten"), today)
        assert result.is_valid is True
        assert any("treated as zero" in w for w in result.warnings)

    def test_oversized_amount_is_a_warning(self, validator, today):
        """Test that an amount too large to round is treated as zero."""
        result = validator.validate_transaction(transaction_draft(amount="1e30"), today)
        assert result.is_valid is True
        assert any("treated as zero" in w for w in result.warnings)

    def test_zero_amount_is_a_warning(self, validator, today):
        result = validator.validate_transaction(transaction_draft(amount="0"), today)
        assert result.is_valid is True
        assert fields_with(result, "warning") == {"amount"}

    def test_negative_amount(self, validator, today):
        result = validator.validate_transaction(transaction_draft(amount="-5"), today)
        assert result.is_valid is False
        assert fields_with(result, "error") == {"amount"}

    def test_unknown_labels(self, validator, today):
        """Test that unknown recurrence and direction labels are errors."""
        draft = transaction_draft(recurrence="Quarterly", direction="Transfer")
        result = validator.validate_transaction(draft, today)
        assert fields_with(result, "error") == {"recurrence", "direction"}

    def test_due_date_must_precede_end_date(self, validator, today):
        draft = transaction_draft(due_date=date(2024, 5, 1), end_date=date(2024, 5, 1))
        result = validator.validate_transaction(draft, today)
        assert result.is_valid is False
        assert "before the end date" in result.issues[0].message

    def test_recurring_needs_an_end(self, validator, today):
        draft = transaction_draft(end_date=None)
        result = validator.validate_transaction(draft, today)
        assert fields_with(result, "error") == {"end_date"}

    def test_end_date_too_far_in_the_future(self, validator, today):
        draft = transaction_draft(end_date=date(2040, 1, 1))
        result = validator.validate_transaction(draft, today)
        assert result.is_valid is False
        assert any(i.issue_type == "out_of_range" for i in result.issues)

    def test_repeat_forever_stays_within_horizon(self, validator, today):
        draft = transaction_draft(end_date=None, repeat_forever=True)
        assert validator.validate_transaction(draft, today).is_valid is True
        assert validator.effective_end_date(draft, today) == date(2036, 3, 13)

    def test_effective_end_date_of_one_off(self, validator, today):
        draft = transaction_draft(recurrence="Never", end_date=date(2030, 1, 1))
        assert validator.effective_end_date(draft, today) == draft.due_date


class TestGoalValidation:
    """Tests for goal drafts."""

    def test_valid_goal(self, validator, today):
        assert validator.validate_goal(goal_draft(), today).is_valid is True

    def test_due_today_is_rejected(self, validator, today):
        result = validator.validate_goal(goal_draft(due_date=today), today)
        assert fields_with(result, "error") == {"due_date"}

    def test_past_due_date_is_a_warning(self, validator, today):
        result = validator.validate_goal(goal_draft(due_date=date(2024, 1, 1)), today)
        assert result.is_valid is True
        assert fields_with(result, "warning") == {"due_date"}

    def test_new_goal_cannot_be_achieved(self, validator, today):
        draft = goal_draft(target_amount="500", contributed_amount="500")
        result = validator.validate_goal(draft, today)
        assert fields_with(result, "error") == {"contributed_amount"}

    def test_edited_goal_may_be_achieved(self, validator, today):
        draft = goal_draft(target_amount="500", contributed_amount="600")
        assert validator.validate_goal(draft, today, is_new=False).is_valid is True

    def test_required_fields(self, validator, today):
        draft = goal_draft(name="", category="", target_amount=None)
        result = validator.validate_goal(draft, today)
        assert fields_with(result, "error") == {"name", "category", "target_amount"}

    def test_negative_contribution_amount(self, validator, today):
        result = validator.validate_goal(goal_draft(contributed_amount="-1"), today)
        assert "contributed_amount" in fields_with(result, "error")


class TestContributionValidation:
    def test_positive_amount(self, validator, make_goal):
        assert validator.validate_contribution(make_goal(), "25").is_valid is True

    @pytest.mark.parametrize("amount", ["", "0", "-10", "abc"])
    def test_rejects_non_positive(self, validator, make_goal, amount):
        assert validator.validate_contribution(make_goal(), amount).is_valid is False

    def test_achieved_goal_is_a_warning(self, validator, make_goal):
        goal = make_goal(target="1000", contributed="1000")
        result = validator.validate_contribution(goal, "100")
        assert result.is_valid is True
        assert fields_with(result, "warning") == {"goal"}


class TestSummary:
    def test_summary_lists_errors_and_warnings(self, validator, today):
        draft = transaction_draft(name="", amount="ten")
        result = validator.validate_transaction(draft, today)
        summary = validator.get_user_friendly_summary(result)

        assert "Please fix the following:" in summary
        assert "Name is required" in summary
        assert "Please verify the following:" in summary

    def test_summary_when_everything_passes(self, validator, today):
        result = validator.validate_transaction(transaction_draft(), today)
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_validation_error_carries_result(self, validator, today):
        result = validator.validate_transaction(transaction_draft(name=""), today)
        error = RecordValidationError(result)
        assert error.result is result
        assert "Name is required" in str(error)
