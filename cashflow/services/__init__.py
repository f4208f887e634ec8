"""Services package."""

from cashflow.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    JsonFileRecordStore,
    LedgerSnapshot,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "LedgerSnapshot",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
]
