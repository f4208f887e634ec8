"""
In-Memory Storage Implementation

Collections live in insertion-ordered dicts keyed by record ID.
Records are frozen, so handing them out never exposes mutable state;
the lists returned are always new lists.

Used directly in tests and as the base of the JSON file store, which
adds persistence on top of every mutation.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional
from uuid import UUID

import structlog

from cashflow.models.audit import AuditEvent
from cashflow.models.records import Goal, Transaction
from cashflow.services.storage.interface import (
    GOALS,
    TRANSACTIONS,
    AuditStorageInterface,
    ChangeListener,
    DuplicateError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStoreInterface):
    """Record store backed by plain dicts."""

    def __init__(
        self,
        transactions: Optional[list[Transaction]] = None,
        goals: Optional[list[Goal]] = None,
    ):
        self._transactions: dict[UUID, Transaction] = {}
        self._goals: dict[UUID, Goal] = {}
        self._listeners: list[ChangeListener] = []

        for transaction in transactions or []:
            self._insert(self._transactions, transaction, "transaction")
        for goal in goals or []:
            self._insert(self._goals, goal, "goal")

    # -- hooks ----------------------------------------------------------------

    def _changed(self, collection: str) -> None:
        """Called after every successful mutation."""
        self._notify(collection)

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """
        Apply a change to both collections or to neither.

        If committing the change (see _changed) raises StorageError, the
        collections are restored to what they held before.
        """
        transactions, goals = dict(self._transactions), dict(self._goals)
        try:
            yield
        except StorageError:
            self._transactions, self._goals = transactions, goals
            raise

    def _notify(self, collection: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(collection)
            except Exception as e:
                # A broken listener must not undo a committed write
                logger.error("change_listener_failed", collection=collection, error=str(e))

    # -- generic helpers --------------------------------------------------------

    @staticmethod
    def _insert(collection: dict, record, kind: str) -> None:
        if record.id in collection:
            raise DuplicateError(f"{kind.capitalize()} already exists: {record.id}")
        collection[record.id] = record

    @staticmethod
    def _replace(collection: dict, record, kind: str) -> None:
        if record.id not in collection:
            raise NotFoundError(f"{kind.capitalize()} not found: {record.id}")
        collection[record.id] = record

    @staticmethod
    def _remove(collection: dict, record_id: UUID, kind: str) -> None:
        if record_id not in collection:
            raise NotFoundError(f"{kind.capitalize()} not found: {record_id}")
        del collection[record_id]

    # -- transactions -----------------------------------------------------------

    def list_transactions(self) -> list[Transaction]:
        return list(self._transactions.values())

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def add_transaction(self, transaction: Transaction) -> None:
        with self._mutation():
            self._insert(self._transactions, transaction, "transaction")
            self._changed(TRANSACTIONS)

    def update_transaction(self, transaction: Transaction) -> None:
        with self._mutation():
            self._replace(self._transactions, transaction, "transaction")
            self._changed(TRANSACTIONS)

    def delete_transaction(self, transaction_id: UUID) -> None:
        with self._mutation():
            self._remove(self._transactions, transaction_id, "transaction")
            self._changed(TRANSACTIONS)

    # -- goals ------------------------------------------------------------------

    def list_goals(self) -> list[Goal]:
        return list(self._goals.values())

    def get_goal(self, goal_id: UUID) -> Optional[Goal]:
        return self._goals.get(goal_id)

    def add_goal(self, goal: Goal) -> None:
        with self._mutation():
            self._insert(self._goals, goal, "goal")
            self._changed(GOALS)

    def update_goal(self, goal: Goal) -> None:
        with self._mutation():
            self._replace(self._goals, goal, "goal")
            self._changed(GOALS)

    def delete_goal(self, goal_id: UUID) -> None:
        with self._mutation():
            self._remove(self._goals, goal_id, "goal")
            self._changed(GOALS)

    # -- change notification ----------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
