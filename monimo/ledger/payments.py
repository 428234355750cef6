"""
Payment Subledger

Settles credit sales (accounts receivable) and credit purchases
(accounts payable), fully or in part.

Settlement is pure bookkeeping: it never touches inventory or the
transaction list. It raises paid_amount on the journal entry and
appends one receipt or disbursement for exactly the settled amount.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from monimo.ledger.clock import Clock
from monimo.ledger.exceptions import (
    JournalEntryNotFoundError,
    NothingToSettleError,
    ValidationError,
)
from monimo.ledger.journals import JournalProjector
from monimo.models.journal import (
    CashDisbursement,
    CashReceipt,
    PurchaseEntry,
    SaleEntry,
)
from monimo.models.ledger import LedgerSnapshot
from monimo.models.validation import ValidationIssue, ValidationResult


NOTE_PAID_IN_FULL = "Paid in full"
NOTE_PARTIAL = "Partial payment"


class SettlementKind(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"


def _settlement_kind(kind: Union[SettlementKind, str]) -> SettlementKind:
    try:
        return SettlementKind(kind)
    except ValueError:
        raise ValidationError(ValidationResult(
            subject="payment",
            issues=[ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message=f"Unknown payment kind: {kind!r} (expected 'sale' or 'purchase')",
                severity="error",
            )],
        )) from None


class Settlement(BaseModel):
    """What one settle() call did."""

    entry: Union[SaleEntry, PurchaseEntry]
    record: Union[CashReceipt, CashDisbursement]
    amount: Decimal

    @property
    def fully_paid(self) -> bool:
        return self.entry.paid


class PaymentSubledger:
    """Settlement operations bound to one ledger snapshot."""

    def __init__(self, state: LedgerSnapshot, journals: JournalProjector, clock: Clock):
        self._state = state
        self._journals = journals
        self._clock = clock

    def _find_entry(self, entry_id: str, kind: SettlementKind) -> Union[SaleEntry, PurchaseEntry]:
        entries = (
            self._state.sales_journal if kind == SettlementKind.SALE
            else self._state.purchases_journal
        )
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            raise JournalEntryNotFoundError(entry_id, kind.value)
        return entry

    def settle(
        self,
        entry_id: str,
        kind: SettlementKind,
        amount: Optional[Decimal] = None,
    ) -> Settlement:
        """
        Record a payment against a Sales or Purchases entry.

        Args:
            entry_id: Journal entry id (not the transaction id)
            kind: Which journal the entry lives in
            amount: Amount paid. None settles the full remaining balance.
                    Larger amounts are capped at the remaining balance.

        Raises:
            JournalEntryNotFoundError: unknown entry
            ValidationError: unknown kind, or amount given but not positive
            NothingToSettleError: the entry is already fully paid
        """
        kind = _settlement_kind(kind)
        entry = self._find_entry(entry_id, kind)

        if amount is not None:
            amount = Decimal(str(amount))
        if amount is not None and amount <= 0:
            raise ValidationError(ValidationResult(
                subject="payment",
                issues=[ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Payment amount must be greater than zero",
                    severity="error",
                )],
            ))

        remaining = entry.remaining
        pay = remaining if amount is None else min(amount, remaining)
        if pay <= 0:
            raise NothingToSettleError(entry.id)

        entry.paid_amount += pay
        entry.refresh_paid()
        note = NOTE_PAID_IN_FULL if entry.paid else NOTE_PARTIAL

        if kind == SettlementKind.SALE:
            record = self._journals.add_receipt(entry, pay, note, date=self._clock())
        else:
            record = self._journals.add_disbursement(entry, pay, note, date=self._clock())

        return Settlement(entry=entry, record=record, amount=pay)
