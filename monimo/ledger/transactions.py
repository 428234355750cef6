"""
Transaction Store

The source-of-truth list of transactions and the create/edit/delete
protocol that keeps inventory and journals consistent with it.

CREATE:  validate -> apply inventory effect -> append -> project journals
EDIT:    validate -> revert original effect -> apply new effect
         (on failure re-apply the original) -> overwrite in place
         -> patch journals
DELETE:  confirm negative stock if needed -> revert effect
         -> drop journal rows, receipts and disbursements -> remove

Edit writes no audit entry of its own; revert + apply already record
the stock movement.
"""

from typing import Optional

from monimo.ledger.clock import Clock, IdFactory
from monimo.ledger.exceptions import (
    ItemNotFoundError,
    LedgerError,
    NegativeStockConfirmationRequired,
    RollbackFailureError,
    TransactionNotFoundError,
)
from monimo.ledger.inventory import InventoryLedger
from monimo.ledger.journals import JournalProjector
from monimo.models.ledger import LedgerSnapshot
from monimo.models.transaction import Transaction, TransactionDraft, TransactionType
from monimo.models.validation import ValidationResult
from monimo.validation.validator import TransactionValidator


class TransactionStore:
    """Transaction operations bound to one ledger snapshot."""

    def __init__(
        self,
        state: LedgerSnapshot,
        inventory: InventoryLedger,
        journals: JournalProjector,
        validator: TransactionValidator,
        ids: IdFactory,
        clock: Clock,
    ):
        self._state = state
        self._inventory = inventory
        self._journals = journals
        self._validator = validator
        self._ids = ids
        self._clock = clock

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find(self, txn_id: str) -> Optional[Transaction]:
        return next((t for t in self._state.transactions if t.id == txn_id), None)

    def get(self, txn_id: str) -> Transaction:
        txn = self.find(txn_id)
        if txn is None:
            raise TransactionNotFoundError(txn_id)
        return txn

    def _build(self, draft: TransactionDraft, txn_id: str) -> Transaction:
        """Turn a validated draft into a transaction with a fresh timestamp."""
        linked = draft.is_inventory_linked
        item = self._inventory.find_item(draft.inv_id) if linked else None
        is_revenue = draft.type == TransactionType.REVENUE
        return Transaction(
            id=txn_id,
            description=draft.description,
            amount=draft.amount,
            type=draft.type,
            date=self._clock(),
            inv_id=draft.inv_id if linked else None,
            inv_qty=draft.inv_qty if linked else None,
            inv_name=(item.name if item else "") if linked else None,
            payment_method=draft.payment_method,
            customer=draft.customer if is_revenue else "",
            supplier=draft.supplier if (not is_revenue and linked) else "",
        )

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create(self, draft: TransactionDraft) -> tuple[Transaction, ValidationResult]:
        """
        Record a new transaction.

        Returns:
            (transaction, validation_result); the result carries any
            non-blocking warnings.

        Raises:
            ValidationError, ItemNotFoundError, InsufficientStockError.
            On any of these the store is unchanged.
        """
        result = self._validator.check(draft)
        txn = self._build(draft, txn_id=self._ids())

        txn.inv_cost = self._inventory.apply_effect(txn)

        self._state.transactions.append(txn)
        self._journals.on_create(txn)
        return txn, result

    # -------------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------------

    def edit(
        self,
        txn_id: str,
        draft: TransactionDraft,
        confirm_negative_stock: bool = False,
    ) -> tuple[Transaction, ValidationResult]:
        """
        Replace a transaction's fields, keeping its id.

        If the new inventory effect cannot be applied, the original
        effect is re-applied and the apply error is raised. If that
        re-apply fails too, RollbackFailureError is raised.

        Raises:
            TransactionNotFoundError, ValidationError,
            NegativeStockConfirmationRequired, ItemNotFoundError,
            InsufficientStockError, RollbackFailureError
        """
        txn = self.get(txn_id)
        result = self._validator.check(draft)
        original = txn.model_copy(deep=True)

        self._check_edit_stock(original, draft, confirm_negative_stock)

        if original.is_inventory_linked:
            self._inventory.revert_effect(original)

        candidate = self._build(draft, txn_id=original.id)
        try:
            candidate.inv_cost = self._inventory.apply_effect(candidate)
        except LedgerError as apply_error:
            try:
                self._inventory.apply_effect(original)
            except LedgerError as rollback_error:
                raise RollbackFailureError(txn_id, apply_error, rollback_error) from rollback_error
            raise

        for field in Transaction.model_fields:
            setattr(txn, field, getattr(candidate, field))

        self._journals.on_update(txn)
        return txn, result

    def _check_edit_stock(
        self,
        original: Transaction,
        draft: TransactionDraft,
        confirmed: bool,
    ) -> None:
        """Shrinking or moving a purchase can leave the old item negative."""
        if confirmed or not original.is_purchase:
            return
        projected = self._inventory.projected_revert_quantity(original)
        if projected is None:
            return
        if (
            draft.type == TransactionType.EXPENSE
            and draft.inv_id == original.inv_id
            and draft.inv_qty
        ):
            projected += draft.inv_qty
        if projected < 0:
            item = self._inventory.get_item(original.inv_id)
            raise NegativeStockConfirmationRequired(item.id, item.name, projected)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(
        self,
        txn_id: str,
        confirm_negative_stock: bool = False,
        detach_missing_item: bool = False,
    ) -> Transaction:
        """
        Remove a transaction and everything derived from it.

        Args:
            confirm_negative_stock: the user accepted that reverting a
                purchase leaves the item with negative stock
            detach_missing_item: delete even though the linked item no
                longer exists (the inventory revert is skipped)

        Raises:
            TransactionNotFoundError, ItemNotFoundError,
            NegativeStockConfirmationRequired
        """
        txn = self.get(txn_id)

        if txn.is_inventory_linked:
            item = self._inventory.find_item(txn.inv_id)
            if item is None:
                if not detach_missing_item:
                    raise ItemNotFoundError(txn.inv_id)
            else:
                projected = self._inventory.projected_revert_quantity(txn)
                if txn.type == TransactionType.EXPENSE and projected < 0 and not confirm_negative_stock:
                    raise NegativeStockConfirmationRequired(item.id, item.name, projected)
                self._inventory.revert_effect(txn)

        self._journals.remove_for_transaction(txn.id)
        self._state.transactions = [t for t in self._state.transactions if t.id != txn.id]
        return txn
