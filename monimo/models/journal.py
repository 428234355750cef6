"""
Journal Models for Monimo

Purchases and Sales entries are derived 1:1 from transactions and carry
the settlement state (accounts payable / receivable). Cash receipts and
disbursements record actual money movement.

The General Journal has no model of its own beyond GeneralJournalLine:
it is rebuilt on every read from transactions, receipts and
disbursements.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from monimo.models.transaction import PaymentMethod


class JournalKind(str, Enum):
    """Which satellite ledger a transaction projects into."""
    SALE = "sale"
    PURCHASE = "purchase"
    EXPENSE = "expense"   # Plain operating expense, disbursement only


class JournalEntry(BaseModel):
    """
    Common fields of Purchases and Sales journal entries.

    paid_amount is the running settled total, 0 <= paid_amount <= amount.
    """

    id: str
    txn_id: str = Field(
        ...,
        description="Source transaction"
    )
    date: datetime
    description: str = ""
    amount: Decimal = Field(..., gt=0)

    inv_id: Optional[str] = None
    inv_qty: Optional[int] = None
    payment_method: PaymentMethod = PaymentMethod.CASH

    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    paid: bool = False

    @property
    def remaining(self) -> Decimal:
        """Unpaid remainder, never negative."""
        return max(Decimal("0"), self.amount - self.paid_amount)

    def refresh_paid(self) -> None:
        self.paid = self.paid_amount >= self.amount


class SaleEntry(JournalEntry):
    """Sales journal row (accounts receivable when on credit)."""
    customer: str = ""

    @property
    def party(self) -> str:
        return self.customer


class PurchaseEntry(JournalEntry):
    """Purchases journal row (accounts payable when on credit)."""
    supplier: str = ""

    @property
    def party(self) -> str:
        return self.supplier


class CashReceipt(BaseModel):
    """Money received, optionally against a sale."""

    id: str
    date: datetime
    received_from: str = ""
    amount: Decimal = Field(..., gt=0)
    sale_id: Optional[str] = Field(
        default=None,
        description="Sales journal entry this receipt settles"
    )
    note: str = ""


class CashDisbursement(BaseModel):
    """
    Money paid out.

    Either a plain operating expense (txn_id set, purchase_id None) or a
    payment against a purchase (both set).
    """

    id: str
    date: datetime
    description: str = ""
    amount: Decimal = Field(..., gt=0)
    txn_id: Optional[str] = None
    purchase_id: Optional[str] = Field(
        default=None,
        description="Purchases journal entry this disbursement settles"
    )
    note: str = ""


class GeneralJournalLine(BaseModel):
    """One row of the derived General Journal."""

    date: datetime
    description: str
    kind: str = Field(
        ...,
        pattern="^(revenue|expense|receipt|disbursement)$",
    )
    amount: Decimal
    detail: str = ""
    link_id: Optional[str] = Field(
        default=None,
        description="Transaction, sale or purchase id this row traces back to"
    )
