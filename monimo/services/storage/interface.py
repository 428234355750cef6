"""
Abstract Storage Interface

DESIGN DECISION: The engine persists one LedgerSnapshot at a time through
this interface. This allows us to:
1. Keep the ledger on a local JSON file today
2. Use in-memory storage for testing
3. Swap in a database later without touching the engine

The interface is intentionally small: load the whole ledger, save the
whole ledger. Every ledger is committed together, so there is no
partial save.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from monimo.models.ledger import CURRENT_SCHEMA_VERSION, LEDGER_KEYS, LedgerSnapshot


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation (JSON file, in-memory, database) must
    implement these methods.
    """

    @abstractmethod
    def load(self) -> LedgerSnapshot:
        """
        Load the persisted ledger.

        Returns:
            The stored snapshot, or an empty one if nothing was saved yet

        Raises:
            SchemaMismatchError: stored schema version is not the current one
            CorruptSnapshotError: stored document is incomplete or invalid
            StorageError: the backend could not be read
        """
        pass

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Persist the full ledger, replacing what was stored.

        Raises:
            StorageError: If save fails. The previously stored ledger
                must still be intact.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class SchemaMismatchError(StorageError):
    """Stored document has a schema version this build cannot read."""

    def __init__(self, found: Any, expected: int = CURRENT_SCHEMA_VERSION):
        self.found = found
        self.expected = expected
        super().__init__(
            f"Ledger schema version {found!r} does not match {expected}; "
            f"run the storage migrations first"
        )


class CorruptSnapshotError(StorageError):
    """Stored document is missing ledgers or fails validation."""
    pass


# =============================================================================
# SHARED DOCUMENT HANDLING
# =============================================================================

def snapshot_to_document(snapshot: LedgerSnapshot) -> dict:
    """Serialise a snapshot to a JSON-compatible dict."""
    return snapshot.model_dump(mode="json")


def document_to_snapshot(document: Any) -> LedgerSnapshot:
    """
    Validate a decoded document and build a snapshot from it.

    Raises:
        SchemaMismatchError, CorruptSnapshotError
    """
    if not isinstance(document, dict):
        raise CorruptSnapshotError("Ledger document is not a JSON object")

    version = document.get("schema_version")
    if version != CURRENT_SCHEMA_VERSION:
        raise SchemaMismatchError(version)

    missing = [key for key in LEDGER_KEYS if key not in document]
    if missing:
        raise CorruptSnapshotError(f"Ledger document is missing: {', '.join(missing)}")

    try:
        return LedgerSnapshot.model_validate(document)
    except PydanticValidationError as e:
        raise CorruptSnapshotError(f"Ledger document failed validation: {e}") from e
