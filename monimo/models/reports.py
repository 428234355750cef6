"""Read-side report models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class LedgerSummary(BaseModel):
    """
    Dashboard totals.

    Expenses EXCLUDE inventory purchases: purchased stock is only
    expensed when sold, through inventory_cost.
    """

    revenue: Decimal = Decimal("0")
    expenses: Decimal = Field(
        default=Decimal("0"),
        description="Non-inventory expenses"
    )
    inventory_cost: Decimal = Field(
        default=Decimal("0"),
        description="COGS of recorded sales"
    )

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.inventory_cost - self.expenses


class PeriodSummary(LedgerSummary):
    """Totals for one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    period_start: datetime
    period_end: datetime

    @property
    def net(self) -> Decimal:
        return self.profit

    @property
    def label(self) -> str:
        return self.period_start.strftime("%B %Y")


class OpenItem(BaseModel):
    """An unsettled receivable or payable."""

    entry_id: str
    txn_id: str
    date: datetime
    party: str
    description: str
    amount: Decimal
    paid_amount: Decimal
    remaining: Decimal
