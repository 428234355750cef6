"""
Ledger Exceptions

Every abort reports which precondition failed so the user can correct
the input and retry. Only RollbackFailureError signals a state the
engine could not restore on its own.
"""

from typing import Optional

from monimo.models.validation import ValidationResult


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """User input failed validation. Raised before any mutation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        errors = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(errors) or f"Invalid {result.subject}")

    @property
    def issues(self):
        return self.result.issues


class ItemNotFoundError(LedgerError):
    """An inventory link points to an item that does not exist."""

    def __init__(self, item_id: Optional[str]):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class InsufficientStockError(LedgerError):
    """A sale asks for more units than are on hand."""

    def __init__(self, item_id: str, item_name: str, requested: int, available: int):
        self.item_id = item_id
        self.item_name = item_name
        self.requested = requested
        self.available = available
        super().__init__(
            f'Not enough stock for "{item_name}". '
            f"Requested: {requested}, available: {available}"
        )


class NegativeStockConfirmationRequired(LedgerError):
    """
    The operation would leave an item with negative stock.

    Not a hard failure: the caller asks the user and re-invokes the
    operation with confirm_negative_stock=True.
    """

    def __init__(self, item_id: str, item_name: str, projected_quantity: int):
        self.item_id = item_id
        self.item_name = item_name
        self.projected_quantity = projected_quantity
        super().__init__(
            f'This will make "{item_name}" negative ({projected_quantity}). '
            "Confirmation required."
        )


class RollbackFailureError(LedgerError):
    """
    An edit failed and restoring the original inventory effect failed too.

    CRITICAL: never retried automatically.
    """

    def __init__(self, txn_id: str, apply_error: Exception, rollback_error: Exception):
        self.txn_id = txn_id
        self.apply_error = apply_error
        self.rollback_error = rollback_error
        super().__init__(
            f"Critical: failed to apply changes to transaction {txn_id} "
            f"({apply_error}) and rollback failed ({rollback_error})"
        )


class TransactionNotFoundError(LedgerError):
    def __init__(self, txn_id: str):
        self.txn_id = txn_id
        super().__init__(f"Transaction not found: {txn_id}")


class JournalEntryNotFoundError(LedgerError):
    def __init__(self, entry_id: str, kind: str):
        self.entry_id = entry_id
        self.kind = kind
        super().__init__(f"{kind.capitalize()} record not found: {entry_id}")


class NothingToSettleError(LedgerError):
    """The journal entry has no remaining balance."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__("Nothing to pay.")
