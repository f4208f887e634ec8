"""
Abstract Storage Interface

DESIGN DECISION: The record store is a collaborator of the engine.
It owns the transaction and goal collections, their persistence and
change notification. The engine only ever sees an immutable snapshot.

This allows us to:
1. Use in-memory storage for testing
2. Persist to a key-value file (or anything else) without touching the engine
3. Keep edits keyed by identifier, never by value equality

The interface is intentionally simple - last write wins on the stored
collection, there are no transactions across records.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from cashflow.models.audit import AuditEvent
from cashflow.models.records import Goal, Transaction

# Collection names passed to change listeners
TRANSACTIONS = "transactions"
GOALS = "goals"

ChangeListener = Callable[[str], None]


class LedgerSnapshot(BaseModel):
    """Immutable view of both collections at one point in time."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    goals: tuple[Goal, ...] = ()


class RecordStoreInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation (in-memory, JSON file, etc.)
    must implement these methods.
    """

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        """All transactions in insertion order."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> None:
        """
        Append a transaction.

        Raises:
            DuplicateError: If a transaction with the same ID exists
            StorageError: If persisting fails
        """
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> None:
        """
        Replace the transaction with the same ID, keeping its position.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If persisting fails
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: UUID) -> None:
        """
        Delete a transaction by ID.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    def list_goals(self) -> list[Goal]:
        """All goals in insertion order."""
        pass

    @abstractmethod
    def get_goal(self, goal_id: UUID) -> Optional[Goal]:
        pass

    @abstractmethod
    def add_goal(self, goal: Goal) -> None:
        pass

    @abstractmethod
    def update_goal(self, goal: Goal) -> None:
        pass

    @abstractmethod
    def delete_goal(self, goal_id: UUID) -> None:
        pass

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        The listener receives the name of the collection that changed.

        Returns:
            A callable that unsubscribes the listener
        """
        pass

    def snapshot(self) -> LedgerSnapshot:
        """Consistent, immutable view handed to the engine."""
        return LedgerSnapshot(
            transactions=tuple(self.list_transactions()),
            goals=tuple(self.list_goals()),
        )


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one contribution).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
