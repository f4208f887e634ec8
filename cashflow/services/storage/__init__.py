"""
Storage Services Package

Provides the abstract record store interface and concrete implementations.
The in-memory store backs tests; the JSON store persists to a key-value file.
"""

from cashflow.services.storage.interface import (
    GOALS,
    TRANSACTIONS,
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerSnapshot,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from cashflow.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from cashflow.services.storage.json_store import JsonFileRecordStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStoreInterface",
    "LedgerSnapshot",
    "GOALS",
    "TRANSACTIONS",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
]
