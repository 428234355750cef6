"""
Storage Services Package

Provides the ledger persistence interface and its implementations.
The ledger lives in a local JSON file; an in-memory backend serves tests.
"""

from monimo.services.storage.interface import (
    CorruptSnapshotError,
    LedgerStorageInterface,
    SchemaMismatchError,
    StorageError,
)
from monimo.services.storage.json_file import JsonFileStorage
from monimo.services.storage.memory import InMemoryLedgerStorage
from monimo.services.storage.migrations import migrate_document, migrate_storage_file

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # Exceptions
    "CorruptSnapshotError",
    "SchemaMismatchError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileStorage",
    # Migrations
    "migrate_document",
    "migrate_storage_file",
]
