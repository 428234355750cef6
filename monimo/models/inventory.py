"""
Inventory Models for Monimo

Items and the quantity audit trail attached to them.

DESIGN DECISION: Items are owned by the inventory ledger alone.
Transactions and journal entries refer to them by id only and resolve
the id at the moment of use.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditAction(str, Enum):
    """Why an item's quantity changed."""
    SALE = "sale"
    PURCHASE = "purchase"
    RESTORE = "restore"   # Revert of an earlier sale or purchase
    MANUAL = "manual"     # Stock correction, opening stock, item edit
    EDIT = "edit"


class InventoryItem(BaseModel):
    """
    A stocked item.

    Quantity may go negative after a confirmed purchase revert or a
    confirmed manual removal. Sales never drive it below zero.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique item key"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Item name"
    )
    description: str = Field(
        default="",
        max_length=1000,
    )
    category: str = Field(
        default="",
        max_length=100,
    )
    unit_price: Decimal = Field(
        ...,
        ge=0,
        description="Unit price used for COGS and valuation"
    )
    quantity: int = Field(
        default=0,
        description="Units on hand"
    )

    @property
    def stock_value(self) -> Decimal:
        return self.unit_price * self.quantity


class AuditLogEntry(BaseModel):
    """
    One quantity change of one item.

    CRITICAL: Entries are immutable once written. balance_after is a
    point-in-time snapshot and is never recomputed when older
    transactions are edited or deleted.
    """

    id: str
    timestamp: datetime

    # Back-reference only; the item may since have been deleted
    item_id: Optional[str] = None
    item_name: str = Field(
        default="",
        description="Item name at write time"
    )

    action: AuditAction
    qty_change: int = Field(
        ...,
        description="Signed quantity delta"
    )
    balance_after: Optional[int] = Field(
        default=None,
        description="Item quantity right after the change, None if the item was missing"
    )
    note: str = ""

    # Structured link to the transaction that caused the change
    txn_id: Optional[str] = None
