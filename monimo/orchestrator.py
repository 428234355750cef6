"""
Main Orchestrator for Monimo

This module ties the ledger components together behind one facade,
the Bookkeeper, which is what the presentation layer calls.

DESIGN DECISION: Every mutation runs against a deep copy of the ledger.
The components are bound to that working copy, the operation runs, the
copy is saved, and only then does it replace the live state:

    copy -> operate -> save -> swap

If any step raises, the copy is thrown away. Memory and storage are
exactly as they were before the call, whatever failed.

The orchestrator also enforces the boundaries:
- No mutation without validation
- No negative stock from a revert or removal without confirmation
- Every operation, accepted or rejected, is audited
"""

from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from monimo.audit import AuditLogger, configure_logging, create_correlation_id
from monimo.config import Settings, get_settings
from monimo.ledger.audit_log import InventoryAuditLog
from monimo.ledger.clock import Clock, IdFactory, new_id, utc_now
from monimo.ledger.exceptions import (
    ItemNotFoundError,
    LedgerError,
    RollbackFailureError,
    ValidationError,
)
from monimo.ledger.inventory import InventoryLedger
from monimo.ledger.journals import JournalProjector
from monimo.ledger.payments import PaymentSubledger, Settlement, SettlementKind
from monimo.ledger.transactions import TransactionStore
from monimo.models.audit import AuditEventType
from monimo.models.inventory import AuditLogEntry, InventoryItem
from monimo.models.journal import (
    CashDisbursement,
    CashReceipt,
    GeneralJournalLine,
    PurchaseEntry,
    SaleEntry,
)
from monimo.models.ledger import DisplaySettings, LedgerSnapshot
from monimo.models.reports import LedgerSummary, PeriodSummary
from monimo.models.transaction import PaymentMethod, Transaction, TransactionDraft, TransactionType
from monimo.models.validation import ValidationIssue, ValidationResult
from monimo.queries import LedgerReports
from monimo.services.storage import (
    JsonFileStorage,
    LedgerStorageInterface,
    StorageError,
    migrate_storage_file,
)
from monimo.validation import InventoryItemValidator, TransactionValidator, check_stock_delta


T = TypeVar("T")

# Fields compared when logging a transaction edit
_TRACKED_FIELDS = (
    "description", "amount", "type", "inv_id", "inv_qty",
    "payment_method", "customer", "supplier",
)


class _Workspace:
    """Ledger components bound to one snapshot."""

    def __init__(
        self,
        state: LedgerSnapshot,
        ids: IdFactory,
        clock: Clock,
        validator: TransactionValidator,
    ):
        self.state = state
        self.audit_log = InventoryAuditLog(state, ids, clock)
        self.inventory = InventoryLedger(state, self.audit_log, ids)
        self.journals = JournalProjector(state, ids)
        self.transactions = TransactionStore(
            state, self.inventory, self.journals, validator, ids, clock
        )
        self.payments = PaymentSubledger(state, self.journals, clock)


class Bookkeeper:
    """
    Single-user bookkeeping facade.

    Mutations:
        create_transaction, edit_transaction, delete_transaction,
        settle_payment, create_inventory_item, edit_inventory_item,
        delete_inventory_item, manual_stock_adjust, restock_item,
        update_display_settings

    Reads return copies; changing them never changes the ledger.

    Usage:
        keeper = Bookkeeper(InMemoryLedgerStorage())
        item = keeper.create_inventory_item("Widget", Decimal("10"), quantity=5)
        keeper.create_transaction(TransactionDraft(...))
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[Settings] = None,
        id_factory: Optional[IdFactory] = None,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings()
        self._ids = id_factory or new_id
        self._clock = clock or utc_now
        self._audit_logger = audit_logger or AuditLogger()

        ledger_settings = self._settings.ledger
        self._validator = TransactionValidator(
            max_amount=Decimal(str(ledger_settings.max_transaction_amount))
        )
        self._item_validator = InventoryItemValidator()
        self._low_stock_threshold = ledger_settings.low_stock_threshold
        self._currency_symbol = ledger_settings.currency_symbol

        self._state = storage.load()

    # =========================================================================
    # COMMIT PROTOCOL
    # =========================================================================

    def _workspace(self, state: LedgerSnapshot) -> _Workspace:
        return _Workspace(state, self._ids, self._clock, self._validator)

    def _run(
        self,
        operation: str,
        action: Callable[[_Workspace], T],
        correlation_id: UUID,
    ) -> T:
        """
        Run one mutation with all-or-nothing semantics.

        Raises whatever the action raises (after logging it), or
        StorageError if the result could not be persisted. Model
        constraint failures are raised as ValidationError.
        """
        work = self._workspace(self._state.model_copy(deep=True))

        try:
            result = action(work)
        except RollbackFailureError as e:
            self._audit_logger.log_rollback_failed(e.txn_id, e, correlation_id)
            raise
        except LedgerError as e:
            self._audit_logger.log_rejected(operation, e, correlation_id)
            raise
        except PydanticValidationError as e:
            error = ValidationError(_model_result(e, e.title.lower()))
            self._audit_logger.log_rejected(operation, error, correlation_id)
            raise error from e

        try:
            self._storage.save(work.state)
        except StorageError as e:
            self._audit_logger.log_storage_failed(operation, e, correlation_id)
            raise

        self._state = work.state
        return result

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def create_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a sale, purchase or expense.

        Raises:
            ValidationError, ItemNotFoundError, InsufficientStockError
        """
        correlation_id = create_correlation_id()
        txn, result = self._run(
            "create_transaction",
            lambda work: work.transactions.create(draft),
            correlation_id,
        )

        self._audit_logger.log_validation_warnings("transaction", result.warnings, correlation_id)
        self._audit_logger.log_transaction_created(
            txn_id=txn.id,
            txn_type=txn.type.value,
            amount=txn.amount,
            inv_id=txn.inv_id,
            inv_qty=txn.inv_qty,
            correlation_id=correlation_id,
        )
        return txn.model_copy(deep=True)

    def edit_transaction(
        self,
        txn_id: str,
        draft: TransactionDraft,
        confirm_negative_stock: bool = False,
    ) -> Transaction:
        """
        Replace a transaction's fields, keeping its id.

        Raises:
            TransactionNotFoundError, ValidationError, ItemNotFoundError,
            InsufficientStockError, NegativeStockConfirmationRequired,
            RollbackFailureError
        """
        correlation_id = create_correlation_id()
        before = self._find_transaction(txn_id)

        txn, result = self._run(
            "edit_transaction",
            lambda work: work.transactions.edit(txn_id, draft, confirm_negative_stock),
            correlation_id,
        )

        changes = {}
        if before is not None:
            for field in _TRACKED_FIELDS:
                old, new = getattr(before, field), getattr(txn, field)
                if old != new:
                    changes[field] = {"from": _loggable(old), "to": _loggable(new)}

        self._audit_logger.log_validation_warnings("transaction", result.warnings, correlation_id)
        self._audit_logger.log_transaction_updated(txn.id, changes, correlation_id)
        return txn.model_copy(deep=True)

    def delete_transaction(
        self,
        txn_id: str,
        confirm_negative_stock: bool = False,
        detach_missing_item: bool = False,
    ) -> Transaction:
        """
        Delete a transaction with its journal rows, receipts and disbursements.

        Raises:
            TransactionNotFoundError, ItemNotFoundError,
            NegativeStockConfirmationRequired
        """
        correlation_id = create_correlation_id()
        txn = self._run(
            "delete_transaction",
            lambda work: work.transactions.delete(
                txn_id,
                confirm_negative_stock=confirm_negative_stock,
                detach_missing_item=detach_missing_item,
            ),
            correlation_id,
        )
        self._audit_logger.log_transaction_deleted(
            txn.id, txn.type.value, txn.amount, correlation_id
        )
        return txn.model_copy(deep=True)

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    def settle_payment(
        self,
        entry_id: str,
        kind: Union[SettlementKind, str],
        amount: Optional[Decimal] = None,
    ) -> Settlement:
        """
        Record a full (amount=None) or partial payment on a credit entry.

        Raises:
            JournalEntryNotFoundError, ValidationError, NothingToSettleError
        """
        correlation_id = create_correlation_id()
        settlement = self._run(
            "settle_payment",
            lambda work: work.payments.settle(entry_id, kind, amount),
            correlation_id,
        )
        self._audit_logger.log_payment_settled(
            entry_id=settlement.entry.id,
            kind=SettlementKind(kind).value,
            amount=settlement.amount,
            fully_paid=settlement.fully_paid,
            correlation_id=correlation_id,
        )
        return settlement.model_copy(deep=True)

    # =========================================================================
    # INVENTORY
    # =========================================================================

    def create_inventory_item(
        self,
        name: str,
        unit_price: Decimal,
        quantity: int = 0,
        description: str = "",
        category: str = "",
    ) -> InventoryItem:
        """Create an item; a non-zero opening quantity is logged as a manual entry."""
        correlation_id = create_correlation_id()

        def action(work: _Workspace) -> InventoryItem:
            self._item_validator.check(
                name, unit_price, quantity,
                description=description, category=category,
            )
            return work.inventory.create_item(
                name=name.strip(),
                unit_price=Decimal(unit_price),
                quantity=quantity,
                description=description,
                category=category,
            )

        item = self._run("create_inventory_item", action, correlation_id)
        self._audit_logger.log_item_event(
            AuditEventType.ITEM_CREATED, item.id, item.name,
            {"unit_price": str(item.unit_price), "quantity": item.quantity},
            correlation_id,
        )
        return item.model_copy(deep=True)

    def edit_inventory_item(
        self,
        item_id: str,
        name: str,
        unit_price: Decimal,
        quantity: Optional[int] = None,
        description: str = "",
        category: str = "",
    ) -> InventoryItem:
        """
        Update an item. quantity=None keeps the current stock; a new value
        is reconciled with a manual audit entry for the difference.
        """
        correlation_id = create_correlation_id()

        def action(work: _Workspace) -> InventoryItem:
            self._item_validator.check(
                name, unit_price, quantity,
                description=description, category=category,
            )
            return work.inventory.edit_item(
                item_id,
                name=name.strip(),
                unit_price=Decimal(unit_price),
                quantity=quantity,
                description=description,
                category=category,
            )

        item = self._run("edit_inventory_item", action, correlation_id)
        self._audit_logger.log_item_event(
            AuditEventType.ITEM_UPDATED, item.id, item.name,
            {"unit_price": str(item.unit_price), "quantity": item.quantity},
            correlation_id,
        )
        return item.model_copy(deep=True)

    def delete_inventory_item(self, item_id: str) -> InventoryItem:
        """Delete an item and purge its audit entries. Linked transactions are kept."""
        correlation_id = create_correlation_id()
        item = self._run(
            "delete_inventory_item",
            lambda work: work.inventory.delete_item(item_id),
            correlation_id,
        )
        self._audit_logger.log_item_event(
            AuditEventType.ITEM_DELETED, item.id, item.name, None, correlation_id
        )
        return item.model_copy(deep=True)

    def manual_stock_adjust(
        self,
        item_id: str,
        delta: int,
        note: str = "Manual adjustment",
        confirm_negative_stock: bool = False,
    ) -> InventoryItem:
        """
        Add (delta > 0) or remove (delta < 0) stock outside any transaction.

        Raises:
            ValidationError: delta is zero
            ItemNotFoundError
            NegativeStockConfirmationRequired
        """
        correlation_id = create_correlation_id()

        def action(work: _Workspace) -> InventoryItem:
            check_stock_delta(delta)
            return work.inventory.manual_adjust(
                item_id, delta, note=note, confirm_negative_stock=confirm_negative_stock
            )

        item = self._run("manual_stock_adjust", action, correlation_id)
        self._audit_logger.log_item_event(
            AuditEventType.STOCK_ADJUSTED, item.id, item.name,
            {"delta": delta, "quantity": item.quantity, "note": note},
            correlation_id,
        )
        return item.model_copy(deep=True)

    def restock_item(
        self,
        item_id: str,
        quantity: int,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        supplier: str = "",
    ) -> Transaction:
        """
        Buy more of an item at its current unit price.

        Recorded as an inventory-linked purchase, so it lands in the
        Purchases journal like any other purchase.
        """
        try:
            item = self.get_item(item_id)
        except ItemNotFoundError as e:
            self._audit_logger.log_rejected("restock_item", e, create_correlation_id())
            raise

        draft = TransactionDraft(
            description=f"Purchase - {item.name}",
            amount=item.unit_price * quantity,
            type=TransactionType.EXPENSE,
            inv_id=item.id,
            inv_qty=quantity,
            payment_method=payment_method,
            supplier=supplier,
        )
        return self.create_transaction(draft)

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_display_settings(
        self,
        business_name: Optional[str] = None,
        theme: Optional[str] = None,
        accent: Optional[str] = None,
    ) -> DisplaySettings:
        correlation_id = create_correlation_id()
        changes = {
            key: value
            for key, value in (
                ("business_name", business_name),
                ("theme", theme),
                ("accent", accent),
            )
            if value is not None
        }

        def action(work: _Workspace) -> DisplaySettings:
            merged = {**work.state.settings.model_dump(), **changes}
            try:
                work.state.settings = DisplaySettings.model_validate(merged)
            except PydanticValidationError as e:
                raise ValidationError(_model_result(e, "settings")) from e
            return work.state.settings

        settings = self._run("update_display_settings", action, correlation_id)
        self._audit_logger.log_settings_updated(changes, correlation_id)
        return settings.model_copy()

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    def _view(self) -> _Workspace:
        return self._workspace(self._state.model_copy(deep=True))

    def _find_transaction(self, txn_id: str) -> Optional[Transaction]:
        return next((t for t in self._state.transactions if t.id == txn_id), None)

    def snapshot(self) -> LedgerSnapshot:
        return self._state.model_copy(deep=True)

    def transactions(self) -> list[Transaction]:
        return self._view().state.transactions

    def get_transaction(self, txn_id: str) -> Transaction:
        return self._view().transactions.get(txn_id)

    def inventory(self) -> list[InventoryItem]:
        return self._view().state.inventory

    def get_item(self, item_id: str) -> InventoryItem:
        return self._view().inventory.get_item(item_id)

    def inventory_log(self, item_id: Optional[str] = None) -> list[AuditLogEntry]:
        """Audit entries, newest first; all items or one."""
        return self._view().audit_log.entries(item_id)

    def audit_entries_for_transaction(self, txn_id: str) -> list[AuditLogEntry]:
        return self._view().audit_log.entries_for_transaction(txn_id)

    def purchases_journal(self) -> list[PurchaseEntry]:
        return self._view().state.purchases_journal

    def sales_journal(self) -> list[SaleEntry]:
        return self._view().state.sales_journal

    def cash_receipts(self) -> list[CashReceipt]:
        return self._view().state.cash_receipts

    def cash_disbursements(self) -> list[CashDisbursement]:
        return self._view().state.cash_disbursements

    def general_journal(self) -> list[GeneralJournalLine]:
        return self._view().journals.general_journal()

    @property
    def display_settings(self) -> DisplaySettings:
        return self._state.settings.model_copy()

    @property
    def reports(self) -> LedgerReports:
        return LedgerReports(
            self.snapshot(),
            low_stock_threshold=self._low_stock_threshold,
            currency_symbol=self._currency_symbol,
        )

    def summary(self) -> LedgerSummary:
        return self.reports.dashboard()

    def period_summary(self, year: int, month: int) -> PeriodSummary:
        return self.reports.period(year, month)


def _loggable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value"):
        return value.value
    return value


def _model_result(error: PydanticValidationError, subject: str) -> ValidationResult:
    """Model constraint failures as a ValidationResult."""
    return ValidationResult(
        subject=subject,
        issues=[
            ValidationIssue(
                field=".".join(str(part) for part in err["loc"]) or subject,
                issue_type="invalid_value",
                message=err["msg"],
                severity="error",
            )
            for err in error.errors()
        ],
    )


def create_bookkeeper(
    storage: Optional[LedgerStorageInterface] = None,
    settings: Optional[Settings] = None,
) -> Bookkeeper:
    """
    Factory function to create a ready-to-use Bookkeeper.

    Args:
        storage: Storage backend. Defaults to the JSON file configured in
                 MONIMO_STORAGE_PATH, upgraded by the migrations first
                 when MONIMO_STORAGE_RUN_MIGRATIONS is set.
        settings: Settings override, mostly for tests.
    """
    settings = settings or get_settings()
    configure_logging(settings.logging.level)

    if storage is None:
        storage_settings = settings.storage
        if storage_settings.run_migrations:
            migrate_storage_file(storage_settings.ledger_path)
        storage = JsonFileStorage(
            storage_settings.ledger_path,
            save_attempts=storage_settings.save_attempts,
        )

    return Bookkeeper(storage, settings=settings, audit_logger=AuditLogger())
