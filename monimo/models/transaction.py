"""
Transaction Models for Monimo

A transaction is the source of truth for every monetary event.
Journals are derived from transactions, never the other way around.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    """Direction of money."""
    REVENUE = "revenue"   # Sale; decreases stock when linked
    EXPENSE = "expense"   # Purchase when linked, operating expense otherwise


class PaymentMethod(str, Enum):
    """
    How the transaction is settled.

    CASH transactions are settled at creation. CREDIT transactions open
    a receivable or payable that the payment subledger settles later.
    """
    CASH = "Cash"
    CREDIT = "Credit"


class TransactionDraft(BaseModel):
    """
    User input for creating or editing a transaction.

    This is UNVALIDATED data. Business rules (non-empty description,
    positive amount, positive quantity for linked items) are checked by
    TransactionValidator before anything is mutated.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = ""
    amount: Decimal = Decimal("0")
    type: TransactionType = TransactionType.REVENUE
    inv_id: Optional[str] = None
    inv_qty: Optional[int] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer: str = ""
    supplier: str = ""

    @property
    def is_inventory_linked(self) -> bool:
        return bool(self.inv_id)


class Transaction(BaseModel):
    """
    A recorded revenue or expense event.

    The inventory link is weak: inv_id is resolved against the inventory
    ledger whenever it is needed. inv_name and inv_cost are snapshots
    taken when the inventory effect was applied.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Transaction amount"
    )
    type: TransactionType
    date: datetime

    # Inventory link
    inv_id: Optional[str] = None
    inv_qty: Optional[int] = Field(default=None, gt=0)
    inv_name: Optional[str] = None
    inv_cost: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="COGS snapshot (unit price x quantity at sale time); None on legacy records"
    )

    payment_method: PaymentMethod = PaymentMethod.CASH
    customer: str = ""   # Revenue only
    supplier: str = ""   # Linked expense only

    @property
    def is_inventory_linked(self) -> bool:
        return self.inv_id is not None

    @property
    def is_sale(self) -> bool:
        return self.type == TransactionType.REVENUE

    @property
    def is_purchase(self) -> bool:
        return self.type == TransactionType.EXPENSE and self.inv_id is not None
