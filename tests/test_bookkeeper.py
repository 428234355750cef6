"""
End-to-end tests through the Bookkeeper facade.

Scenarios A-E follow one Widget (unit price 10, 5 on hand) through a
purchase, a sale, a rejected sale, a delete and a rejected edit.
"""

import json

import pytest
from datetime import date
from decimal import Decimal

from conftest import expense, purchase, sale
from monimo.ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    NegativeStockConfirmationRequired,
    RollbackFailureError,
    ValidationError,
)
from monimo.ledger.inventory import InventoryLedger
from monimo.models.inventory import AuditAction
from monimo.models.transaction import PaymentMethod, TransactionType
from monimo.models.validation import ValidationResult
from monimo.orchestrator import Bookkeeper, create_bookkeeper
from monimo.services.storage import InMemoryLedgerStorage, StorageError
from monimo.validation import TransactionValidator


class FailingStorage(InMemoryLedgerStorage):
    """Saves succeed until fail is switched on."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def save(self, snapshot):
        if self.fail:
            raise StorageError("disk full")
        super().save(snapshot)


class TestScenarios:
    """The reference purchase/sale walk-through."""

    def test_a_purchase(self, keeper, widget):
        txn = keeper.create_transaction(purchase(widget.id, 3, 30))

        assert keeper.get_item(widget.id).quantity == 8
        [entry] = keeper.purchases_journal()
        assert entry.amount == Decimal("30")
        assert entry.txn_id == txn.id
        [disb] = keeper.cash_disbursements()
        assert disb.purchase_id == entry.id

    def test_b_sale(self, keeper, widget):
        keeper.create_transaction(purchase(widget.id, 3, 30))
        txn = keeper.create_transaction(sale(widget.id, 6, 90))

        assert keeper.get_item(widget.id).quantity == 2
        assert txn.inv_cost == Decimal("60")
        [entry] = keeper.sales_journal()
        assert entry.amount == Decimal("90")
        assert entry.paid

    def test_c_insufficient_stock(self, keeper, widget, storage):
        keeper.create_transaction(purchase(widget.id, 3, 30))
        keeper.create_transaction(sale(widget.id, 6, 90))
        saves = storage.save_count

        with pytest.raises(InsufficientStockError) as exc_info:
            keeper.create_transaction(sale(widget.id, 5, 75))

        assert exc_info.value.available == 2
        assert keeper.get_item(widget.id).quantity == 2
        assert len(keeper.transactions()) == 2
        assert storage.save_count == saves

    def test_d_delete_purchase(self, keeper, widget):
        txn = keeper.create_transaction(purchase(widget.id, 3, 30))

        keeper.delete_transaction(txn.id)

        assert keeper.get_item(widget.id).quantity == 5
        assert keeper.purchases_journal() == []
        assert keeper.cash_disbursements() == []
        assert keeper.transactions() == []

    def test_d_delete_consumed_purchase_needs_confirmation(self, keeper, widget):
        bought = keeper.create_transaction(purchase(widget.id, 3, 30))
        keeper.create_transaction(sale(widget.id, 6, 90))

        with pytest.raises(NegativeStockConfirmationRequired):
            keeper.delete_transaction(bought.id)
        assert keeper.get_item(widget.id).quantity == 2

        keeper.delete_transaction(bought.id, confirm_negative_stock=True)
        assert keeper.get_item(widget.id).quantity == -1

    def test_e_failed_edit_changes_nothing(self, keeper, widget):
        """An edit that cannot apply leaves every ledger exactly as before."""
        keeper.create_transaction(purchase(widget.id, 3, 30))
        sold = keeper.create_transaction(sale(widget.id, 6, 90))
        before = keeper.snapshot()

        with pytest.raises(InsufficientStockError):
            keeper.edit_transaction(sold.id, sale(widget.id, 100, 1500))

        assert keeper.snapshot() == before
        assert keeper.get_item(widget.id).quantity == 2


class TestAtomicity:
    """Every operation commits completely or not at all."""

    def test_storage_failure_keeps_memory_unchanged(self, ids, clock, audit_logger):
        storage = FailingStorage()
        keeper = Bookkeeper(storage, id_factory=ids, clock=clock, audit_logger=audit_logger)
        item = keeper.create_inventory_item("Widget", Decimal("10"), quantity=5)
        before = keeper.snapshot()

        storage.fail = True
        with pytest.raises(StorageError):
            keeper.create_transaction(sale(item.id, 2, 30))

        assert keeper.snapshot() == before
        assert "storage_failed" in audit_logger.types()

    def test_rollback_failure_discards_work(self, keeper, widget, audit_logger, monkeypatch):
        sold = keeper.create_transaction(sale(widget.id, 2, 30))
        before = keeper.snapshot()

        def always_fails(self, t):
            raise InsufficientStockError(widget.id, widget.name, 99, 0)

        monkeypatch.setattr(InventoryLedger, "apply_effect", always_fails)
        with pytest.raises(RollbackFailureError):
            keeper.edit_transaction(sold.id, sale(widget.id, 3, 45))

        assert keeper.snapshot() == before
        assert audit_logger.events[-1].severity.value == "critical"

    def test_reads_are_copies(self, keeper, widget):
        keeper.inventory()[0].quantity = 1000
        keeper.get_item(widget.id).quantity = 1000
        assert keeper.get_item(widget.id).quantity == 5

    def test_state_survives_reload(self, keeper, widget, storage, ids, clock):
        keeper.create_transaction(sale(widget.id, 2, 30, method=PaymentMethod.CREDIT))
        reloaded = Bookkeeper(storage, id_factory=ids, clock=clock)
        assert reloaded.snapshot() == keeper.snapshot()


class TestOperations:
    """Facade operations beyond the scenarios."""

    def test_settle_payment(self, keeper, widget):
        keeper.create_transaction(sale(widget.id, 2, 30, method=PaymentMethod.CREDIT))
        entry = keeper.sales_journal()[0]

        result = keeper.settle_payment(entry.id, "sale", Decimal("10"))
        assert not result.fully_paid
        assert keeper.sales_journal()[0].paid_amount == Decimal("10")
        assert keeper.reports.total_receivable() == Decimal("20")

    def test_restock_item(self, keeper, widget):
        txn = keeper.restock_item(widget.id, 4, supplier="Acme")
        assert txn.description == "Purchase - Widget"
        assert txn.amount == Decimal("40")
        assert txn.type == TransactionType.EXPENSE
        assert keeper.get_item(widget.id).quantity == 9
        assert keeper.purchases_journal()[0].supplier == "Acme"

    def test_restock_unknown_item(self, keeper):
        with pytest.raises(ItemNotFoundError):
            keeper.restock_item("ghost", 1)

    def test_manual_adjust(self, keeper, widget):
        item = keeper.manual_stock_adjust(widget.id, -2, note="Damaged")
        assert item.quantity == 3
        assert keeper.inventory_log(widget.id)[0].note == "Damaged"

    def test_manual_adjust_zero_rejected(self, keeper, widget, audit_logger):
        with pytest.raises(ValidationError):
            keeper.manual_stock_adjust(widget.id, 0)
        assert audit_logger.types()[-1] == "operation_rejected"

    def test_edit_and_delete_item(self, keeper, widget):
        keeper.edit_inventory_item(widget.id, "Widget Pro", Decimal("12"), quantity=7)
        item = keeper.get_item(widget.id)
        assert item.name == "Widget Pro"
        assert item.quantity == 7

        keeper.delete_inventory_item(widget.id)
        assert keeper.inventory() == []
        assert keeper.inventory_log(widget.id) == []

    def test_create_item_rejects_blank_name(self, keeper):
        with pytest.raises(ValidationError):
            keeper.create_inventory_item("   ", Decimal("1"))
        assert keeper.inventory() == []

    def test_audit_entries_by_transaction(self, keeper, widget):
        txn = keeper.create_transaction(sale(widget.id, 2, 30))
        keeper.edit_transaction(txn.id, sale(widget.id, 1, 15))
        actions = [e.action for e in keeper.audit_entries_for_transaction(txn.id)]
        assert actions == [AuditAction.SALE, AuditAction.RESTORE, AuditAction.SALE]

    def test_general_journal(self, keeper, widget):
        keeper.create_transaction(sale(widget.id, 1, 15))
        keeper.create_transaction(expense(20))
        assert len(keeper.general_journal()) == 4

    def test_summary_and_period(self, keeper, widget, clock):
        keeper.create_transaction(sale(widget.id, 2, 30))
        keeper.create_transaction(expense(5))
        assert keeper.summary().profit == Decimal("5")
        assert keeper.period_summary(clock.now.year, clock.now.month).net == Decimal("5")
        assert keeper.period_summary(2020, 1).revenue == Decimal("0")

    def test_update_display_settings(self, keeper, storage):
        settings = keeper.update_display_settings(business_name="Ana's Shop", theme="dark")
        assert settings.business_name == "Ana's Shop"
        assert settings.accent == "blue"
        assert storage.document["settings"]["theme"] == "dark"

    def test_invalid_display_settings(self, keeper):
        with pytest.raises(ValidationError):
            keeper.update_display_settings(accent="orange")
        assert keeper.display_settings.accent == "blue"


class TestAuditEvents:
    """Operational events emitted by the facade."""

    def test_success_events(self, keeper, widget, audit_logger):
        txn = keeper.create_transaction(sale(widget.id, 2, 30))
        keeper.edit_transaction(txn.id, sale(widget.id, 3, 45))
        keeper.delete_transaction(txn.id)
        assert audit_logger.types() == [
            "item_created",
            "transaction_created",
            "transaction_updated",
            "transaction_deleted",
        ]

    def test_update_event_lists_changes(self, keeper, widget, audit_logger):
        txn = keeper.create_transaction(sale(widget.id, 2, 30))
        keeper.edit_transaction(txn.id, sale(widget.id, 3, 45))
        changes = audit_logger.events[-1].details["changes"]
        assert changes["amount"] == {"from": "30", "to": "45"}
        assert changes["inv_qty"] == {"from": 2, "to": 3}

    def test_rejection_event(self, keeper, widget, audit_logger):
        with pytest.raises(InsufficientStockError):
            keeper.create_transaction(sale(widget.id, 50, 500))
        event = audit_logger.events[-1]
        assert event.event_type.value == "operation_rejected"
        assert event.error_code == "InsufficientStockError"

    def test_overlong_description_rejected(self, keeper, audit_logger):
        with pytest.raises(ValidationError):
            keeper.create_transaction(expense(5, description="x" * 600))
        assert keeper.transactions() == []
        assert audit_logger.types()[-1] == "operation_rejected"

    def test_overlong_item_name_rejected(self, keeper, audit_logger):
        with pytest.raises(ValidationError):
            keeper.create_inventory_item("n" * 300, Decimal("1"), quantity=1)
        assert keeper.inventory() == []
        assert audit_logger.types()[-1] == "operation_rejected"

    def test_model_constraint_becomes_validation_error(self, keeper, audit_logger, monkeypatch):
        """A record the models refuse surfaces as ValidationError, not a pydantic error."""
        monkeypatch.setattr(
            TransactionValidator, "validate",
            lambda self, draft: ValidationResult(subject="transaction"),
        )
        with pytest.raises(ValidationError) as exc_info:
            keeper.create_transaction(expense(5, description="x" * 600))

        assert exc_info.value.issues[0].field == "description"
        assert keeper.transactions() == []
        assert audit_logger.events[-1].error_code == "ValidationError"

    def test_unknown_settlement_kind_rejected(self, keeper, audit_logger):
        with pytest.raises(ValidationError):
            keeper.settle_payment("nope", "refund")
        assert audit_logger.types()[-1] == "operation_rejected"

    def test_restock_unknown_item_rejected(self, keeper, audit_logger):
        with pytest.raises(ItemNotFoundError):
            keeper.restock_item("ghost", 1)
        assert audit_logger.types()[-1] == "operation_rejected"

    def test_large_amount_warning(self, keeper, audit_logger):
        keeper.create_transaction(expense(50_000_000))
        assert "validation_warning" in audit_logger.types()


class TestBootstrap:
    """Tests for create_bookkeeper."""

    def test_uses_configured_file(self, tmp_path, monkeypatch):
        path = tmp_path / "shop.json"
        monkeypatch.setenv("MONIMO_STORAGE_PATH", str(path))

        keeper = create_bookkeeper()
        keeper.create_inventory_item("Widget", Decimal("10"), quantity=5)

        assert json.loads(path.read_text(encoding="utf-8"))["inventory"][0]["name"] == "Widget"

    def test_migrates_legacy_file(self, tmp_path, monkeypatch):
        path = tmp_path / "shop.json"
        path.write_text(json.dumps({
            "inventoryData": json.dumps([
                {"id": "1", "name": "Widget", "unitPrice": 10, "quantity": 5},
            ]),
        }), encoding="utf-8")
        monkeypatch.setenv("MONIMO_STORAGE_PATH", str(path))

        keeper = create_bookkeeper()

        assert keeper.get_item("1").quantity == 5
        assert json.loads(path.read_text(encoding="utf-8"))["schema_version"] == 1

    def test_explicit_storage(self):
        storage = InMemoryLedgerStorage()
        keeper = create_bookkeeper(storage=storage)
        assert keeper.transactions() == []
        assert keeper.reports.transactions(date(2024, 1, 1)) == []
