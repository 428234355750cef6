"""
Inventory Audit Log

Append-only, newest-first record of every inventory quantity change.

DESIGN DECISION: Entries are never edited. Deleting or editing a
transaction appends new entries (restore, sale, purchase); it does not
rewrite older ones. The only removal is the purge that accompanies
deleting an item.
"""

from typing import Optional

from monimo.ledger.clock import Clock, IdFactory
from monimo.models.inventory import AuditAction, AuditLogEntry
from monimo.models.ledger import LedgerSnapshot


class InventoryAuditLog:
    """Audit log view bound to one ledger snapshot."""

    def __init__(self, state: LedgerSnapshot, ids: IdFactory, clock: Clock):
        self._state = state
        self._ids = ids
        self._clock = clock

    def append(
        self,
        item_id: Optional[str],
        action: AuditAction,
        qty_change: int,
        note: str = "",
        txn_id: Optional[str] = None,
    ) -> AuditLogEntry:
        """
        Record a quantity change.

        Must be called AFTER the item's quantity was updated so that
        balance_after reflects the new quantity.
        """
        item = next((i for i in self._state.inventory if i.id == item_id), None)
        entry = AuditLogEntry(
            id=self._ids(),
            timestamp=self._clock(),
            item_id=item_id,
            item_name=item.name if item else note,
            action=action,
            qty_change=qty_change,
            balance_after=item.quantity if item else None,
            note=note,
            txn_id=txn_id,
        )
        self._state.inventory_log.insert(0, entry)
        return entry

    def entries(self, item_id: Optional[str] = None) -> list[AuditLogEntry]:
        """All entries, or the entries of one item, newest first."""
        if item_id is None:
            return list(self._state.inventory_log)
        return [e for e in self._state.inventory_log if e.item_id == item_id]

    def entries_for_transaction(self, txn_id: str) -> list[AuditLogEntry]:
        return [e for e in self._state.inventory_log if e.txn_id == txn_id]

    def purge_item(self, item_id: str) -> int:
        """Drop every entry of a deleted item. Returns how many were removed."""
        before = len(self._state.inventory_log)
        self._state.inventory_log = [
            e for e in self._state.inventory_log if e.item_id != item_id
        ]
        return before - len(self._state.inventory_log)

    def net_change(self, item_id: str) -> int:
        return sum(e.qty_change for e in self._state.inventory_log if e.item_id == item_id)
