"""Validation package."""

from monimo.validation.validator import (
    InventoryItemValidator,
    TransactionValidator,
    check_stock_delta,
)

__all__ = ["InventoryItemValidator", "TransactionValidator", "check_stock_delta"]
