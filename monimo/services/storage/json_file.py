"""
JSON File Storage Implementation

DESIGN DECISION: The ledger is one JSON document on local disk because:
1. The business owner can open and back up a single file
2. No database setup required
3. A whole-document write keeps every ledger in step

TRADEOFFS:
- The full ledger is rewritten on every commit (fine for one shop)
- One writer at a time; there is no cross-process locking

CRITICAL: Saves go to a temp file in the same directory and are moved
over the target with os.replace, so a crash mid-write never leaves a
half-written ledger behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from monimo.config import get_settings
from monimo.models.ledger import LedgerSnapshot
from monimo.services.storage.interface import (
    CorruptSnapshotError,
    LedgerStorageInterface,
    StorageError,
    document_to_snapshot,
    snapshot_to_document,
)


class JsonFileStorage(LedgerStorageInterface):
    """
    Ledger storage backed by a local JSON file.

    Usage:
        storage = JsonFileStorage("shop.json")
        snapshot = storage.load()
        storage.save(snapshot)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        save_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._path = Path(path).expanduser() if path is not None else settings.ledger_path
        self._save_attempts = save_attempts or settings.save_attempts

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LedgerSnapshot:
        if not self._path.exists():
            return LedgerSnapshot.empty()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read ledger file {self._path}: {e}") from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptSnapshotError(f"Ledger file {self._path} is not valid JSON: {e}") from e

        return document_to_snapshot(document)

    def save(self, snapshot: LedgerSnapshot) -> None:
        payload = json.dumps(snapshot_to_document(snapshot), ensure_ascii=False, indent=2)

        writer = retry(
            stop=stop_after_attempt(self._save_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )(self._write_atomic)

        try:
            writer(payload)
        except OSError as e:
            raise StorageError(f"Failed to save ledger to {self._path}: {e}") from e

    def _write_atomic(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
