"""
JSON Key-Value Storage Implementation

DESIGN DECISION: Both collections are stored as one JSON document, each
under its own key ("Transactions", "Goals"), and the whole document is
rewritten after every mutation. This mirrors a simple key-value store:
1. Last write wins on the stored collection
2. No partial updates to corrupt
3. Field names and types round-trip exactly

Occurrence dates are stored with each transaction, so reading a record
back reproduces its schedule without re-expanding it.

TRADEOFFS:
- Rewrites the full document on each change (fine for a personal ledger)
- No locking between processes
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cashflow.config import StorageSettings, get_settings
from cashflow.models.records import Goal, Transaction
from cashflow.services.storage.interface import (
    ConnectionError,
    StorageError,
)
from cashflow.services.storage.memory import InMemoryRecordStore

logger = structlog.get_logger(__name__)


class JsonFileRecordStore(InMemoryRecordStore):
    """
    Record store persisted to a JSON file.

    The in-memory collections are the source of truth while the process
    runs; the file is rewritten after every successful mutation.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        settings: Optional[StorageSettings] = None,
    ):
        super().__init__()
        self._settings = settings or get_settings().storage
        self._path = Path(path) if path is not None else self._settings.file_path
        self._retrying = Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    # -- persistence ------------------------------------------------------------

    def _read_document(self) -> Optional[dict[str, Any]]:
        if not self._path.exists():
            return None
        with self._path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def _write_document(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _to_document(self) -> dict[str, Any]:
        return {
            self._settings.transactions_key: [
                t.model_dump(mode="json") for t in self.list_transactions()
            ],
            self._settings.goals_key: [
                g.model_dump(mode="json") for g in self.list_goals()
            ],
        }

    def reload(self) -> None:
        """
        Replace the in-memory collections with the file contents.

        A missing file means empty collections.

        Raises:
            ConnectionError: If the file cannot be read
            StorageError: If the file is not a valid ledger document
        """
        try:
            document = self._retrying.copy()(self._read_document)
        except OSError as e:
            raise ConnectionError(f"Failed to read {self._path}: {e}")
        except json.JSONDecodeError as e:
            raise StorageError(f"Ledger file is not valid JSON: {e}")

        if document is None:
            logger.info("ledger_file_missing", path=str(self._path))
            self._transactions = {}
            self._goals = {}
            return

        if not isinstance(document, dict):
            raise StorageError("Ledger file must contain a JSON object")

        try:
            transactions = [
                Transaction.model_validate(item)
                for item in document.get(self._settings.transactions_key, [])
            ]
            goals = [
                Goal.model_validate(item)
                for item in document.get(self._settings.goals_key, [])
            ]
        except ValidationError as e:
            raise StorageError(f"Ledger file contains invalid records: {e}")

        self._transactions = {t.id: t for t in transactions}
        self._goals = {g.id: g for g in goals}
        logger.info(
            "ledger_loaded",
            path=str(self._path),
            transactions=len(self._transactions),
            goals=len(self._goals),
        )

    def _changed(self, collection: str) -> None:
        """Persist, then notify listeners."""
        try:
            self._retrying.copy()(self._write_document, self._to_document())
        except OSError as e:
            logger.error("ledger_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to write {self._path}: {e}")
        self._notify(collection)
