"""
Inventory Ledger

Owns item records and their quantities. Every quantity change goes
through this class and is recorded in the inventory audit log.

apply_effect / revert_effect are exact inverses:
- sale:     apply -qty (audit "sale"),     revert +qty (audit "restore")
- purchase: apply +qty (audit "purchase"), revert -qty (audit "restore")

All checks run before the first mutation, so a failed call leaves the
item and the audit log untouched.
"""

from decimal import Decimal
from typing import Optional

from monimo.ledger.audit_log import InventoryAuditLog
from monimo.ledger.clock import IdFactory
from monimo.ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    NegativeStockConfirmationRequired,
)
from monimo.models.inventory import AuditAction, InventoryItem
from monimo.models.ledger import LedgerSnapshot
from monimo.models.transaction import Transaction, TransactionType


class InventoryLedger:
    """Inventory operations bound to one ledger snapshot."""

    def __init__(
        self,
        state: LedgerSnapshot,
        audit_log: InventoryAuditLog,
        ids: IdFactory,
    ):
        self._state = state
        self._log = audit_log
        self._ids = ids

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_item(self, item_id: Optional[str]) -> Optional[InventoryItem]:
        if item_id is None:
            return None
        return next((i for i in self._state.inventory if i.id == item_id), None)

    def get_item(self, item_id: Optional[str]) -> InventoryItem:
        item = self.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    # -------------------------------------------------------------------------
    # Transaction effects
    # -------------------------------------------------------------------------

    def apply_effect(self, txn: Transaction) -> Decimal:
        """
        Apply a transaction's stock movement.

        Returns:
            The COGS of the movement: unit price x quantity for a sale,
            0 for a purchase or an unlinked transaction.

        Raises:
            ItemNotFoundError: the linked item does not exist
            InsufficientStockError: a sale exceeds the quantity on hand
        """
        if txn.inv_id is None:
            return Decimal("0")

        item = self.get_item(txn.inv_id)
        qty = txn.inv_qty or 0

        if txn.type == TransactionType.REVENUE:
            if item.quantity < qty:
                raise InsufficientStockError(item.id, item.name, qty, item.quantity)
            item.quantity -= qty
            self._log.append(item.id, AuditAction.SALE, -qty, f"Sale tx {txn.id}", txn_id=txn.id)
            return item.unit_price * qty

        item.quantity += qty
        self._log.append(item.id, AuditAction.PURCHASE, qty, f"Purchase tx {txn.id}", txn_id=txn.id)
        return Decimal("0")

    def revert_effect(self, txn: Transaction) -> None:
        """
        Undo a transaction's stock movement.

        Reverting a purchase may drive the quantity negative. Callers in
        delete/edit flows check projected_revert_quantity() and obtain
        confirmation first.

        Raises:
            ItemNotFoundError: the linked item no longer exists
        """
        if txn.inv_id is None:
            return

        item = self.get_item(txn.inv_id)
        qty = txn.inv_qty or 0

        if txn.type == TransactionType.REVENUE:
            item.quantity += qty
            self._log.append(
                item.id, AuditAction.RESTORE, qty,
                f"Restore from revert of sale tx {txn.id}", txn_id=txn.id,
            )
        else:
            item.quantity -= qty
            self._log.append(
                item.id, AuditAction.RESTORE, -qty,
                f"Restore (remove) from revert of purchase tx {txn.id}", txn_id=txn.id,
            )

    def projected_revert_quantity(self, txn: Transaction) -> Optional[int]:
        """Quantity the linked item would have after revert_effect, None if unlinked or missing."""
        item = self.find_item(txn.inv_id)
        if item is None:
            return None
        qty = txn.inv_qty or 0
        if txn.type == TransactionType.REVENUE:
            return item.quantity + qty
        return item.quantity - qty

    # -------------------------------------------------------------------------
    # Manual stock changes
    # -------------------------------------------------------------------------

    def manual_adjust(
        self,
        item_id: str,
        delta: int,
        note: str = "Manual adjustment",
        confirm_negative_stock: bool = False,
    ) -> InventoryItem:
        """
        Change an item's quantity directly (audit action "manual").

        Raises:
            ItemNotFoundError: unknown item
            NegativeStockConfirmationRequired: a removal would leave the
                quantity below zero and was not confirmed
        """
        item = self.get_item(item_id)
        projected = item.quantity + delta
        if delta < 0 and projected < 0 and not confirm_negative_stock:
            raise NegativeStockConfirmationRequired(item.id, item.name, projected)

        item.quantity = projected
        self._log.append(item.id, AuditAction.MANUAL, delta, note)
        return item

    # -------------------------------------------------------------------------
    # Item lifecycle
    # -------------------------------------------------------------------------

    def create_item(
        self,
        name: str,
        unit_price: Decimal,
        quantity: int = 0,
        description: str = "",
        category: str = "",
    ) -> InventoryItem:
        """
        Create an item.

        The record starts empty and the opening stock is booked as the
        first manual audit entry, so the audit trail accounts for every
        unit on hand.
        """
        item = InventoryItem(
            id=self._ids(),
            name=name,
            description=description,
            category=category,
            unit_price=unit_price,
            quantity=0,
        )
        self._state.inventory.append(item)
        if quantity != 0:
            item.quantity = quantity
            self._log.append(item.id, AuditAction.MANUAL, quantity, "Initial stock on item creation")
        return item

    def edit_item(
        self,
        item_id: str,
        name: str,
        unit_price: Decimal,
        quantity: Optional[int] = None,
        description: str = "",
        category: str = "",
    ) -> InventoryItem:
        """
        Update an item's details.

        A changed quantity is reconciled with a manual audit entry for
        the difference. Past transactions keep their name and cost
        snapshots.
        """
        item = self.get_item(item_id)
        item.name = name
        item.description = description
        item.category = category
        item.unit_price = unit_price

        if quantity is not None and quantity != item.quantity:
            diff = quantity - item.quantity
            item.quantity = quantity
            self._log.append(item.id, AuditAction.MANUAL, diff, "Edit item starting qty adjusted")
        return item

    def delete_item(self, item_id: str) -> InventoryItem:
        """
        Remove an item and purge its audit entries.

        Transactions linked to the item are left as they are; reverting
        them later fails with ItemNotFoundError.
        """
        item = self.get_item(item_id)
        self._state.inventory = [i for i in self._state.inventory if i.id != item_id]
        self._log.purge_item(item_id)
        return item
