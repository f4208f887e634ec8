"""
Main Orchestrator for Cashflow

This module ties together all the components and defines the
write-side flows for:
1. Transactions (draft → validate → expand → save)
2. Goals (draft → validate → feasibility → save)
3. Contributions (amount → synthetic expense + goal update)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No record persists without passing validation
- Records are replaced by identifier, never matched by value
- A contribution either updates both the goal and the ledger or neither
- Every step is audited

Reads go through CashflowQueries; the flows never compute balances for
display.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from cashflow.audit import AuditLogger, configure_logging, create_correlation_id
from cashflow.config import Settings, get_settings
from cashflow.engine.dates import DateLike, normalize, today as current_date
from cashflow.engine.ledger import feasibility_score
from cashflow.engine.recurrence import expand
from cashflow.models.records import (
    Direction,
    Goal,
    GoalDraft,
    RecurrencePeriod,
    Transaction,
    TransactionDraft,
    ValidationResult,
)
from cashflow.queries import CashflowQueries
from cashflow.services.storage import (
    InMemoryRecordStore,
    JsonFileRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from cashflow.validation import RecordValidationError, RecordValidator, parse_amount

_NAME_LIMIT = 200


def _issues_for_audit(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
        if i.severity == "error"
    ]


class TransactionFlow:
    """
    Orchestrates adding, editing and deleting transactions.

    Flow:
    1. Validate → Reject drafts with error-level issues
    2. Expand → Occurrences computed once from (due, period, end)
    3. Save → Add or replace by identifier
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger or AuditLogger()

    def build(
        self,
        draft: TransactionDraft,
        today: date,
        transaction_id: Optional[UUID] = None,
    ) -> Transaction:
        """Turn a validated draft into a record with its occurrences."""
        period = RecurrencePeriod.from_label(draft.recurrence)
        end_date = self._validator.effective_end_date(draft, today)

        fields = dict(
            name=draft.name,
            amount=parse_amount(draft.amount),
            recurrence=period,
            due_date=draft.due_date,
            end_date=end_date,
            occurrences=expand(draft.due_date, period, end_date),
            category=draft.category,
            direction=Direction.from_label(draft.direction),
        )
        if transaction_id is not None:
            fields["id"] = transaction_id
        return Transaction(**fields)

    def _validate(self, draft: TransactionDraft, today: date, correlation_id: UUID) -> None:
        result = self._validator.validate_transaction(draft, today)
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                entity_type="transaction",
                issues=_issues_for_audit(result),
                correlation_id=correlation_id,
            )
            raise RecordValidationError(result)

    def add(
        self,
        draft: TransactionDraft,
        today: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate, expand and save a new transaction.

        Raises:
            RecordValidationError: If the draft has error-level issues
            StorageError: If the store rejects the record
        """
        correlation_id = correlation_id or create_correlation_id()
        today = normalize(today) if today is not None else current_date()

        self._validate(draft, today, correlation_id)
        transaction = self.build(draft, today)

        try:
            self._store.add_transaction(transaction)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="add_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            name=transaction.name,
            recurrence=transaction.recurrence.value,
            occurrence_count=len(transaction.occurrences),
            correlation_id=correlation_id,
        )
        return transaction

    def edit(
        self,
        transaction_id: UUID,
        draft: TransactionDraft,
        today: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Replace a transaction by identifier, re-expanding its occurrences.

        Raises:
            NotFoundError: If the transaction doesn't exist
            RecordValidationError: If the draft has error-level issues
        """
        correlation_id = correlation_id or create_correlation_id()
        today = normalize(today) if today is not None else current_date()

        if self._store.get_transaction(transaction_id) is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        self._validate(draft, today, correlation_id)
        transaction = self.build(draft, today, transaction_id=transaction_id)

        try:
            self._store.update_transaction(transaction)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="update_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_transaction_updated(
            transaction_id=transaction.id,
            name=transaction.name,
            occurrence_count=len(transaction.occurrences),
            correlation_id=correlation_id,
        )
        return transaction

    def delete(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a transaction by identifier."""
        correlation_id = correlation_id or create_correlation_id()
        self._store.delete_transaction(transaction_id)
        self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )


class GoalFlow:
    """
    Orchestrates goals and contributions towards them.

    The feasibility score is computed from the transaction snapshot at
    save time and cached on the goal. Queries recompute it on demand.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = (settings or get_settings()).engine

    def _with_feasibility(self, goal: Goal, today: date) -> Goal:
        score = feasibility_score(goal, self._store.snapshot().transactions, today=today)
        return goal.model_copy(update={"feasibility": score})

    def _validate(
        self,
        draft: GoalDraft,
        today: date,
        is_new: bool,
        correlation_id: UUID,
    ) -> None:
        result = self._validator.validate_goal(draft, today, is_new=is_new)
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                entity_type="goal",
                issues=_issues_for_audit(result),
                correlation_id=correlation_id,
            )
            raise RecordValidationError(result)

    def _build(self, draft: GoalDraft, goal_id: Optional[UUID] = None) -> Goal:
        fields = dict(
            name=draft.name,
            due_date=draft.due_date,
            target_amount=parse_amount(draft.target_amount),
            contributed_amount=parse_amount(draft.contributed_amount),
            category=draft.category,
        )
        if goal_id is not None:
            fields["id"] = goal_id
        return Goal(**fields)

    def add(
        self,
        draft: GoalDraft,
        today: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """
        Validate and save a new goal with its feasibility score.

        Raises:
            RecordValidationError: If the draft has error-level issues
        """
        correlation_id = correlation_id or create_correlation_id()
        today = normalize(today) if today is not None else current_date()

        self._validate(draft, today, True, correlation_id)
        goal = self._with_feasibility(self._build(draft), today)
        self._store.add_goal(goal)

        self._audit_logger.log_goal_saved(
            goal_id=goal.id,
            name=goal.name,
            feasibility=str(goal.feasibility) if goal.feasibility is not None else None,
            is_new=True,
            correlation_id=correlation_id,
        )
        return goal

    def edit(
        self,
        goal_id: UUID,
        draft: GoalDraft,
        today: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """
        Replace a goal by identifier.

        Raises:
            NotFoundError: If the goal doesn't exist
            RecordValidationError: If the draft has error-level issues
        """
        correlation_id = correlation_id or create_correlation_id()
        today = normalize(today) if today is not None else current_date()

        if self._store.get_goal(goal_id) is None:
            raise NotFoundError(f"Goal {goal_id} not found")

        self._validate(draft, today, False, correlation_id)
        goal = self._with_feasibility(self._build(draft, goal_id=goal_id), today)
        self._store.update_goal(goal)

        self._audit_logger.log_goal_saved(
            goal_id=goal.id,
            name=goal.name,
            feasibility=str(goal.feasibility) if goal.feasibility is not None else None,
            is_new=False,
            correlation_id=correlation_id,
        )
        return goal

    def delete(
        self,
        goal_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a goal. Its past contributions stay in the ledger."""
        correlation_id = correlation_id or create_correlation_id()
        self._store.delete_goal(goal_id)
        self._audit_logger.log_goal_deleted(
            goal_id=goal_id,
            correlation_id=correlation_id,
        )

    def contribute(
        self,
        goal_id: UUID,
        amount: Union[str, Decimal, None],
        on: Optional[DateLike] = None,
        today: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Goal, Transaction]:
        """
        Contribute towards a goal.

        Adds one non-recurring expense dated ``on`` (today when omitted)
        and raises the goal's contributed amount by the same value. If the
        goal update fails for any reason, the expense is removed again.

        The cached feasibility is computed from ``today`` (the current
        date when omitted), not from the contribution date.

        Returns:
            (updated_goal, contribution_transaction)

        Raises:
            NotFoundError: If the goal doesn't exist
            RecordValidationError: If the amount isn't a positive number
            StorageError: If either write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        today = normalize(today) if today is not None else current_date()
        on = normalize(on) if on is not None else today

        goal = self._store.get_goal(goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")

        result = self._validator.validate_contribution(goal, amount)
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                entity_type="contribution",
                issues=_issues_for_audit(result),
                correlation_id=correlation_id,
            )
            raise RecordValidationError(result)

        value = parse_amount(amount)
        name = self._settings.contribution_name_template.format(goal_name=goal.name)
        contribution = Transaction(
            name=name[:_NAME_LIMIT],
            amount=value,
            recurrence=RecurrencePeriod.NONE,
            due_date=on,
            end_date=on,
            occurrences=(on,),
            category=self._settings.contribution_category,
            direction=Direction.EXPENSE,
        )
        self._store.add_transaction(contribution)

        updated = goal.model_copy(
            update={"contributed_amount": goal.contributed_amount + value}
        )
        try:
            updated = self._with_feasibility(updated, today)
            self._store.update_goal(updated)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="contribute",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            self._store.delete_transaction(contribution.id)
            raise
        except Exception as e:
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": "contribute", "goal_id": str(goal.id)},
                correlation_id=correlation_id,
            )
            self._store.delete_transaction(contribution.id)
            raise

        self._audit_logger.log_goal_contribution(
            goal_id=goal.id,
            transaction_id=contribution.id,
            amount=str(value),
            contributed=str(updated.contributed_amount),
            correlation_id=correlation_id,
        )
        if updated.achieved and not goal.achieved:
            self._audit_logger.log_goal_achieved(
                goal_id=goal.id,
                name=goal.name,
                correlation_id=correlation_id,
            )

        return updated, contribution


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[RecordStoreInterface] = None,
) -> tuple[TransactionFlow, GoalFlow, CashflowQueries, RecordStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Record store to use. When None, the configured backend
               is created (a JSON file or memory).

    Returns:
        (transaction_flow, goal_flow, queries, store)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level, settings.app.log_format)

    if store is None:
        if settings.storage.backend == "memory":
            store = InMemoryRecordStore()
        else:
            store = JsonFileRecordStore(settings=settings.storage)

    audit_logger = AuditLogger()  # Local-only logging
    validator = RecordValidator(settings.engine)

    transaction_flow = TransactionFlow(
        store,
        validator=validator,
        audit_logger=audit_logger,
    )
    goal_flow = GoalFlow(
        store,
        validator=validator,
        audit_logger=audit_logger,
        settings=settings,
    )
    queries = CashflowQueries(store, audit_logger=audit_logger)

    return transaction_flow, goal_flow, queries, store
