"""
In-memory storage, used by tests and throwaway sessions.

Snapshots are kept as JSON text so a load returns fresh objects that
went through the same serialisation as the file backend.
"""

import json
from typing import Optional

from monimo.models.ledger import LedgerSnapshot
from monimo.services.storage.interface import (
    LedgerStorageInterface,
    document_to_snapshot,
    snapshot_to_document,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage that never touches disk."""

    def __init__(self, initial: Optional[LedgerSnapshot] = None):
        self._payload: Optional[str] = None
        self.save_count = 0
        if initial is not None:
            self._payload = json.dumps(snapshot_to_document(initial))

    def load(self) -> LedgerSnapshot:
        if self._payload is None:
            return LedgerSnapshot.empty()
        return document_to_snapshot(json.loads(self._payload))

    def save(self, snapshot: LedgerSnapshot) -> None:
        self._payload = json.dumps(snapshot_to_document(snapshot))
        self.save_count += 1

    @property
    def document(self) -> Optional[dict]:
        """The stored document, decoded. None before the first save."""
        return json.loads(self._payload) if self._payload is not None else None
