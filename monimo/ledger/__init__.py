"""
Ledger engine package.

Components are imported from their modules (monimo.ledger.inventory,
monimo.ledger.transactions, ...). Only the exceptions are re-exported
here.
"""

from monimo.ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    JournalEntryNotFoundError,
    LedgerError,
    NegativeStockConfirmationRequired,
    NothingToSettleError,
    RollbackFailureError,
    TransactionNotFoundError,
    ValidationError,
)

__all__ = [
    "InsufficientStockError",
    "ItemNotFoundError",
    "JournalEntryNotFoundError",
    "LedgerError",
    "NegativeStockConfirmationRequired",
    "NothingToSettleError",
    "RollbackFailureError",
    "TransactionNotFoundError",
    "ValidationError",
]
