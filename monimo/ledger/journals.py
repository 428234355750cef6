"""
Journal Projector

Derives the Purchases, Sales, Cash Receipts and Cash Disbursements
ledgers from transactions:

    revenue                   -> Sales entry        (+ receipt if Cash)
    expense + inventory link  -> Purchases entry    (+ disbursement if Cash)
    expense, no link          -> bare disbursement

on_create regenerates a transaction's rows from scratch. on_update
patches existing rows in place so settlement history (paid_amount,
receipts, disbursements) survives an edit.

The General Journal is never stored; general_journal() rebuilds it
from transactions, receipts and disbursements on every call.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from monimo.ledger.clock import IdFactory
from monimo.models.journal import (
    CashDisbursement,
    CashReceipt,
    GeneralJournalLine,
    JournalKind,
    PurchaseEntry,
    SaleEntry,
)
from monimo.models.ledger import LedgerSnapshot
from monimo.models.transaction import PaymentMethod, Transaction, TransactionType


NOTE_CASH_SALE = "Cash sale (paid in full)"
NOTE_CASH_PURCHASE = "Cash purchase (paid in full)"
NOTE_EDIT_SETTLED = "Marked paid on edit (diff)"


def journal_kind(txn: Transaction) -> JournalKind:
    if txn.type == TransactionType.REVENUE:
        return JournalKind.SALE
    if txn.inv_id is not None:
        return JournalKind.PURCHASE
    return JournalKind.EXPENSE


class JournalProjector:
    """Journal projection bound to one ledger snapshot."""

    def __init__(self, state: LedgerSnapshot, ids: IdFactory):
        self._state = state
        self._ids = ids

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def sale_for(self, txn_id: str) -> Optional[SaleEntry]:
        return next((s for s in self._state.sales_journal if s.txn_id == txn_id), None)

    def purchase_for(self, txn_id: str) -> Optional[PurchaseEntry]:
        return next((p for p in self._state.purchases_journal if p.txn_id == txn_id), None)

    def _expense_disbursements(self, txn_id: str) -> list[CashDisbursement]:
        return [
            d for d in self._state.cash_disbursements
            if d.txn_id == txn_id and d.purchase_id is None
        ]

    # -------------------------------------------------------------------------
    # Creation path
    # -------------------------------------------------------------------------

    def on_create(self, txn: Transaction) -> None:
        """
        Project a newly recorded transaction.

        Any rows already keyed by txn.id are removed first, so calling
        this twice never yields two entries for one transaction.
        """
        self.remove_for_transaction(txn.id)
        self._create_rows(txn)

    def _create_rows(self, txn: Transaction) -> None:
        kind = journal_kind(txn)
        amount = Decimal(txn.amount)
        is_cash = txn.payment_method == PaymentMethod.CASH

        if kind == JournalKind.SALE:
            entry = SaleEntry(
                id=self._ids(),
                txn_id=txn.id,
                date=txn.date,
                description=txn.description,
                amount=amount,
                inv_id=txn.inv_id,
                inv_qty=txn.inv_qty,
                payment_method=txn.payment_method,
                customer=txn.customer,
                paid_amount=amount if is_cash else Decimal("0"),
                paid=is_cash,
            )
            self._state.sales_journal.insert(0, entry)
            if entry.paid:
                self.add_receipt(entry, amount, NOTE_CASH_SALE)

        elif kind == JournalKind.PURCHASE:
            entry = PurchaseEntry(
                id=self._ids(),
                txn_id=txn.id,
                date=txn.date,
                description=txn.description,
                amount=amount,
                inv_id=txn.inv_id,
                inv_qty=txn.inv_qty,
                payment_method=txn.payment_method,
                supplier=txn.supplier,
                paid_amount=amount if is_cash else Decimal("0"),
                paid=is_cash,
            )
            self._state.purchases_journal.insert(0, entry)
            if entry.paid:
                self.add_disbursement(entry, amount, NOTE_CASH_PURCHASE)

        else:
            self._state.cash_disbursements.insert(0, CashDisbursement(
                id=self._ids(),
                date=txn.date,
                description=txn.description,
                amount=amount,
                txn_id=txn.id,
            ))

    # -------------------------------------------------------------------------
    # Update path
    # -------------------------------------------------------------------------

    def on_update(self, txn: Transaction) -> None:
        """
        Re-align journal rows with an edited transaction.

        Rows of the transaction's current kind are patched in place.
        Rows of kinds it no longer has are dropped together with their
        receipts/disbursements. If no row of the current kind exists, it
        is created with the creation rules.
        """
        kind = journal_kind(txn)

        if kind != JournalKind.SALE:
            self._drop_sales(txn.id)
        if kind != JournalKind.PURCHASE:
            self._drop_purchases(txn.id)
        if kind != JournalKind.EXPENSE:
            self._drop_expense_disbursements(txn.id)

        if kind == JournalKind.SALE:
            entry = self.sale_for(txn.id)
            if entry is None:
                self._create_rows(txn)
            else:
                entry.customer = txn.customer or entry.customer
                self._patch_entry(entry, txn)

        elif kind == JournalKind.PURCHASE:
            entry = self.purchase_for(txn.id)
            if entry is None:
                self._create_rows(txn)
            else:
                entry.supplier = txn.supplier or entry.supplier
                self._patch_entry(entry, txn)

        else:
            rows = self._expense_disbursements(txn.id)
            if not rows:
                self._create_rows(txn)
            for d in rows:
                d.date = txn.date
                d.description = txn.description
                d.amount = Decimal(txn.amount)

    def _patch_entry(self, entry: Union[SaleEntry, PurchaseEntry], txn: Transaction) -> None:
        entry.date = txn.date
        entry.description = txn.description
        entry.amount = Decimal(txn.amount)
        entry.inv_id = txn.inv_id
        entry.inv_qty = txn.inv_qty
        entry.payment_method = txn.payment_method
        entry.refresh_paid()

        if entry.payment_method == PaymentMethod.CASH and not entry.paid:
            # Cash means settled: book the shortfall now
            shortfall = entry.amount - entry.paid_amount
            entry.paid_amount = entry.amount
            entry.paid = True
            if isinstance(entry, SaleEntry):
                self.add_receipt(entry, shortfall, NOTE_EDIT_SETTLED)
            else:
                self.add_disbursement(entry, shortfall, NOTE_EDIT_SETTLED)
        else:
            if entry.paid_amount > entry.amount:
                entry.paid_amount = entry.amount
            entry.refresh_paid()

    # -------------------------------------------------------------------------
    # Money movement records
    # -------------------------------------------------------------------------

    def add_receipt(
        self, sale: SaleEntry, amount: Decimal, note: str, date: Optional[datetime] = None
    ) -> CashReceipt:
        receipt = CashReceipt(
            id=self._ids(),
            date=date or sale.date,
            received_from=sale.customer or sale.description or "Customer",
            amount=amount,
            sale_id=sale.id,
            note=note,
        )
        self._state.cash_receipts.insert(0, receipt)
        return receipt

    def add_disbursement(
        self, purchase: PurchaseEntry, amount: Decimal, note: str, date: Optional[datetime] = None
    ) -> CashDisbursement:
        disbursement = CashDisbursement(
            id=self._ids(),
            date=date or purchase.date,
            description=purchase.supplier or purchase.description or "Purchase",
            amount=amount,
            txn_id=purchase.txn_id,
            purchase_id=purchase.id,
            note=note,
        )
        self._state.cash_disbursements.insert(0, disbursement)
        return disbursement

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    def _drop_sales(self, txn_id: str) -> None:
        sale_ids = {s.id for s in self._state.sales_journal if s.txn_id == txn_id}
        if not sale_ids:
            return
        self._state.cash_receipts = [
            r for r in self._state.cash_receipts if r.sale_id not in sale_ids
        ]
        self._state.sales_journal = [
            s for s in self._state.sales_journal if s.txn_id != txn_id
        ]

    def _drop_purchases(self, txn_id: str) -> None:
        purchase_ids = {p.id for p in self._state.purchases_journal if p.txn_id == txn_id}
        if not purchase_ids:
            return
        self._state.cash_disbursements = [
            d for d in self._state.cash_disbursements if d.purchase_id not in purchase_ids
        ]
        self._state.purchases_journal = [
            p for p in self._state.purchases_journal if p.txn_id != txn_id
        ]

    def _drop_expense_disbursements(self, txn_id: str) -> None:
        self._state.cash_disbursements = [
            d for d in self._state.cash_disbursements
            if not (d.txn_id == txn_id and d.purchase_id is None)
        ]

    def remove_for_transaction(self, txn_id: str) -> None:
        """Drop every journal row derived from a transaction, receipts and disbursements included."""
        self._drop_sales(txn_id)
        self._drop_purchases(txn_id)
        self._state.cash_disbursements = [
            d for d in self._state.cash_disbursements if d.txn_id != txn_id
        ]

    # -------------------------------------------------------------------------
    # General Journal
    # -------------------------------------------------------------------------

    def general_journal(self) -> list[GeneralJournalLine]:
        """
        Rebuild the General Journal.

        Order: transactions (newest first), then receipts, then
        disbursements (each oldest first).
        """
        lines = []

        for t in reversed(self._state.transactions):
            bits = []
            if t.inv_name:
                bits.append(f"Item: {t.inv_name} x{t.inv_qty}")
            if t.customer and t.type == TransactionType.REVENUE:
                bits.append(f"Customer: {t.customer}")
            if t.supplier and t.is_purchase:
                bits.append(f"Supplier: {t.supplier}")
            bits.append(f"Method: {t.payment_method.value}")
            lines.append(GeneralJournalLine(
                date=t.date,
                description=t.description,
                kind=t.type.value,
                amount=t.amount,
                detail=" | ".join(bits),
                link_id=t.id,
            ))

        for r in reversed(self._state.cash_receipts):
            detail = f"Sale: {r.sale_id or ''}"
            if r.note:
                detail += f" | {r.note}"
            lines.append(GeneralJournalLine(
                date=r.date,
                description=f"Receivable paid: {r.received_from or 'Customer'}",
                kind="receipt",
                amount=r.amount,
                detail=detail,
                link_id=r.sale_id,
            ))

        for d in reversed(self._state.cash_disbursements):
            bits = []
            if d.txn_id:
                bits.append(f"Linked Txn: {d.txn_id}")
            if d.note:
                bits.append(d.note)
            lines.append(GeneralJournalLine(
                date=d.date,
                description=f"Payment: {d.description}",
                kind="disbursement",
                amount=d.amount,
                detail=" | ".join(bits),
                link_id=d.txn_id,
            ))

        return lines
