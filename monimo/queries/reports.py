"""
Ledger Reports

DESIGN DECISION: Reports are DETERMINISTIC reads over one snapshot.
Nothing here mutates state, and every figure is recomputed from the
stored ledgers on each call, so a report can never drift from the data.

PROFIT RULE:
    profit = revenue - inventory cost (COGS of sales) - non-inventory expenses

Inventory purchases are NOT expenses: purchased stock is expensed only
when it is sold, through its COGS snapshot.
"""

from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional

from monimo.config import get_settings
from monimo.models.inventory import InventoryItem
from monimo.models.journal import PurchaseEntry, SaleEntry
from monimo.models.ledger import LedgerSnapshot
from monimo.models.reports import LedgerSummary, OpenItem, PeriodSummary
from monimo.models.transaction import Transaction, TransactionType


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class LedgerReports:
    """
    Read-side aggregates for the presentation layer.

    GUARANTEES:
    - Only reports what is stored
    - Zero totals (not errors) for empty ledgers or periods
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        low_stock_threshold: Optional[int] = None,
        currency_symbol: Optional[str] = None,
    ):
        settings = get_settings().ledger
        self._snapshot = snapshot
        self._low_stock_threshold = (
            settings.low_stock_threshold if low_stock_threshold is None else low_stock_threshold
        )
        self._currency_symbol = (
            settings.currency_symbol if currency_symbol is None else currency_symbol
        )

    # =========================================================================
    # COGS
    # =========================================================================

    def inventory_cost(self, txn: Transaction) -> Decimal:
        """
        COGS attributed to a transaction.

        Uses the stored inv_cost snapshot. Older records without one fall
        back to quantity x the item's current unit price (sales only).
        """
        if txn.inv_cost is not None:
            return Decimal(txn.inv_cost)
        if txn.type == TransactionType.REVENUE and txn.inv_id and txn.inv_qty:
            item = next((i for i in self._snapshot.inventory if i.id == txn.inv_id), None)
            unit = item.unit_price if item else Decimal("0")
            return unit * txn.inv_qty
        return Decimal("0")

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def _summarise(self, transactions: Iterable[Transaction]) -> dict:
        revenue = Decimal("0")
        expenses = Decimal("0")
        cost = Decimal("0")
        for t in transactions:
            if t.type == TransactionType.REVENUE:
                revenue += t.amount
            elif t.inv_id is None:
                expenses += t.amount
            cost += self.inventory_cost(t)
        return {"revenue": revenue, "expenses": expenses, "inventory_cost": cost}

    def dashboard(self) -> LedgerSummary:
        """All-time revenue, non-inventory expenses, inventory cost and profit."""
        return LedgerSummary(**self._summarise(self._snapshot.transactions))

    def period(self, year: int, month: int) -> PeriodSummary:
        """Totals for one calendar month (UTC)."""
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        last_day = monthrange(year, month)[1]
        end = datetime.combine(date(year, month, last_day), time.max, tzinfo=timezone.utc)

        in_period = [
            t for t in self._snapshot.transactions
            if start <= _as_utc(t.date) <= end
        ]
        return PeriodSummary(
            year=year,
            month=month,
            period_start=start,
            period_end=end,
            **self._summarise(in_period),
        )

    # =========================================================================
    # INVENTORY
    # =========================================================================

    def inventory_value(self) -> Decimal:
        """Stock on hand at current unit prices."""
        return sum((i.stock_value for i in self._snapshot.inventory), Decimal("0"))

    def low_stock(self) -> list[InventoryItem]:
        """Items at or below the low-stock threshold, negative quantities included."""
        return [
            i for i in self._snapshot.inventory
            if i.quantity <= self._low_stock_threshold
        ]

    # =========================================================================
    # RECEIVABLES / PAYABLES
    # =========================================================================

    @staticmethod
    def _open_items(entries: Iterable) -> list[OpenItem]:
        return [
            OpenItem(
                entry_id=e.id,
                txn_id=e.txn_id,
                date=e.date,
                party=e.party,
                description=e.description,
                amount=e.amount,
                paid_amount=e.paid_amount,
                remaining=e.remaining,
            )
            for e in entries
            if e.remaining > 0
        ]

    def receivables(self) -> list[OpenItem]:
        """Credit sales with an unpaid remainder, newest first."""
        return self._open_items(self._snapshot.sales_journal)

    def payables(self) -> list[OpenItem]:
        """Credit purchases with an unpaid remainder, newest first."""
        return self._open_items(self._snapshot.purchases_journal)

    def total_receivable(self) -> Decimal:
        return sum((o.remaining for o in self.receivables()), Decimal("0"))

    def total_payable(self) -> Decimal:
        return sum((o.remaining for o in self.payables()), Decimal("0"))

    # =========================================================================
    # LISTINGS
    # =========================================================================

    def transactions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Transactions in an inclusive date range, newest first.

        date_to covers the whole day.
        """
        lower = (
            datetime.combine(date_from, time.min, tzinfo=timezone.utc)
            if date_from else None
        )
        upper = (
            datetime.combine(date_to, time.min, tzinfo=timezone.utc) + timedelta(days=1)
            if date_to else None
        )

        selected = []
        for t in reversed(self._snapshot.transactions):
            moment = _as_utc(t.date)
            if lower is not None and moment < lower:
                continue
            if upper is not None and moment >= upper:
                continue
            selected.append(t)
        return selected

    def format_currency(self, amount: Decimal) -> str:
        """'₱1,234.50' style display string."""
        return f"{self._currency_symbol}{Decimal(amount or 0):,.2f}"
