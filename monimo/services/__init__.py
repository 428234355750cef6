"""Services package."""

from monimo.services.storage import (
    CorruptSnapshotError,
    InMemoryLedgerStorage,
    JsonFileStorage,
    LedgerStorageInterface,
    SchemaMismatchError,
    StorageError,
)

__all__ = [
    "CorruptSnapshotError",
    "InMemoryLedgerStorage",
    "JsonFileStorage",
    "LedgerStorageInterface",
    "SchemaMismatchError",
    "StorageError",
]
