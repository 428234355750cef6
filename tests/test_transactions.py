"""Tests for the transaction store create/edit/delete protocol."""

import pytest
from decimal import Decimal

from conftest import expense, purchase, sale
from monimo.ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    NegativeStockConfirmationRequired,
    RollbackFailureError,
    TransactionNotFoundError,
    ValidationError,
)
from monimo.ledger.inventory import InventoryLedger
from monimo.models.inventory import AuditAction
from monimo.models.transaction import PaymentMethod, TransactionDraft, TransactionType


@pytest.fixture
def item(engine):
    return engine.inventory.create_item("Widget", Decimal("10"), quantity=5)


class TestCreate:
    """Tests for recording transactions."""

    def test_sale_snapshots_name_and_cost(self, engine, item, clock):
        txn, result = engine.transactions.create(sale(item.id, 3, 45, customer="Ana"))
        assert result.is_valid
        assert txn.inv_name == "Widget"
        assert txn.inv_cost == Decimal("30")
        assert txn.customer == "Ana"
        assert txn.date == clock.now
        assert item.quantity == 2
        assert engine.state.transactions == [txn]

    def test_unlinked_expense(self, engine):
        txn, _ = engine.transactions.create(expense(20))
        assert txn.inv_id is None
        assert txn.inv_qty is None
        assert txn.inv_name is None
        assert txn.inv_cost == Decimal("0")

    def test_party_fields_follow_type(self, engine, item):
        """Customer only on revenue, supplier only on linked expenses."""
        draft = TransactionDraft(
            description="Rent", amount=Decimal("50"),
            type=TransactionType.EXPENSE, customer="x", supplier="Landlord",
        )
        txn, _ = engine.transactions.create(draft)
        assert txn.customer == ""
        assert txn.supplier == ""

        txn, _ = engine.transactions.create(purchase(item.id, 1, 10, supplier="Acme"))
        assert txn.supplier == "Acme"

    def test_validation_error_changes_nothing(self, engine, item):
        with pytest.raises(ValidationError):
            engine.transactions.create(sale(item.id, 0, 10))
        assert engine.state.transactions == []
        assert item.quantity == 5

    def test_insufficient_stock_records_nothing(self, engine, item):
        with pytest.raises(InsufficientStockError):
            engine.transactions.create(sale(item.id, 6, 60))
        assert engine.state.transactions == []
        assert engine.state.sales_journal == []
        assert item.quantity == 5

    def test_unknown_item(self, engine):
        with pytest.raises(ItemNotFoundError):
            engine.transactions.create(purchase("ghost", 1, 10))
        assert engine.state.transactions == []


class TestEdit:
    """Tests for editing transactions in place."""

    def test_edit_keeps_id_and_reapplies_effect(self, engine, item, clock):
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        clock.advance(hours=1)

        edited, _ = engine.transactions.edit(txn.id, sale(item.id, 4, 60))

        assert edited.id == txn.id
        assert edited is engine.state.transactions[0]
        assert edited.inv_qty == 4
        assert edited.inv_cost == Decimal("40")
        assert edited.date == clock.now
        assert item.quantity == 1

    def test_edit_writes_no_extra_audit_entry(self, engine, item):
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        before = len(engine.state.inventory_log)
        engine.transactions.edit(txn.id, sale(item.id, 3, 45))
        new_entries = engine.state.inventory_log[: len(engine.state.inventory_log) - before]
        assert [e.action for e in new_entries] == [AuditAction.SALE, AuditAction.RESTORE]

    def test_failed_edit_restores_original(self, engine, item):
        """The original effect is re-applied and the apply error surfaces."""
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        before_txn = txn.model_copy(deep=True)
        before_sales = [s.model_copy(deep=True) for s in engine.state.sales_journal]

        with pytest.raises(InsufficientStockError):
            engine.transactions.edit(txn.id, sale(item.id, 100, 1000))

        assert engine.state.transactions[0] == before_txn
        assert engine.state.sales_journal == before_sales
        assert item.quantity == 3

    def test_rollback_failure_is_critical(self, engine, item, monkeypatch):
        """If restoring the original also fails, RollbackFailureError is raised."""
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))

        def always_fails(self, t):
            raise InsufficientStockError(item.id, item.name, 99, 0)

        monkeypatch.setattr(InventoryLedger, "apply_effect", always_fails)

        with pytest.raises(RollbackFailureError) as exc_info:
            engine.transactions.edit(txn.id, sale(item.id, 3, 45))

        assert exc_info.value.txn_id == txn.id
        assert isinstance(exc_info.value.apply_error, InsufficientStockError)
        assert isinstance(exc_info.value.rollback_error, InsufficientStockError)

    def test_edit_with_missing_item_aborts(self, engine, item):
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        engine.inventory.delete_item(item.id)
        with pytest.raises(ItemNotFoundError):
            engine.transactions.edit(txn.id, expense(30))
        assert engine.state.transactions[0].inv_id == item.id

    def test_edit_unknown_transaction(self, engine):
        with pytest.raises(TransactionNotFoundError):
            engine.transactions.edit("nope", expense(10))

    def test_shrinking_consumed_purchase_needs_confirmation(self, engine, item):
        """A purchase edit that would leave stock negative must be confirmed."""
        bought, _ = engine.transactions.create(purchase(item.id, 10, 100))
        engine.transactions.create(sale(item.id, 14, 210))
        assert item.quantity == 1

        with pytest.raises(NegativeStockConfirmationRequired) as exc_info:
            engine.transactions.edit(bought.id, purchase(item.id, 5, 50))
        assert exc_info.value.projected_quantity == -4
        assert item.quantity == 1

        engine.transactions.edit(bought.id, purchase(item.id, 5, 50), confirm_negative_stock=True)
        assert item.quantity == -4

    def test_moving_purchase_to_expense(self, engine, item):
        bought, _ = engine.transactions.create(purchase(item.id, 3, 30))
        edited, _ = engine.transactions.edit(bought.id, expense(30, description="Supplies"))
        assert item.quantity == 5
        assert edited.inv_id is None
        assert edited.inv_cost == Decimal("0")


class TestDelete:
    """Tests for deleting transactions."""

    def test_delete_sale_restores_stock(self, engine, item):
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        engine.transactions.delete(txn.id)
        assert item.quantity == 5
        assert engine.state.transactions == []
        assert engine.state.sales_journal == []
        assert engine.state.cash_receipts == []

    def test_delete_purchase_needs_confirmation_when_consumed(self, engine, item):
        bought, _ = engine.transactions.create(purchase(item.id, 3, 30))
        engine.transactions.create(sale(item.id, 6, 90))

        with pytest.raises(NegativeStockConfirmationRequired):
            engine.transactions.delete(bought.id)
        assert item.quantity == 2
        assert len(engine.state.transactions) == 2

        engine.transactions.delete(bought.id, confirm_negative_stock=True)
        assert item.quantity == -1
        assert engine.state.purchases_journal == []

    def test_delete_with_missing_item(self, engine, item):
        """A dangling link blocks delete unless detaching is requested."""
        txn, _ = engine.transactions.create(sale(item.id, 2, 30))
        engine.inventory.delete_item(item.id)

        with pytest.raises(ItemNotFoundError):
            engine.transactions.delete(txn.id)
        assert len(engine.state.transactions) == 1

        engine.transactions.delete(txn.id, detach_missing_item=True)
        assert engine.state.transactions == []
        assert engine.state.sales_journal == []

    def test_delete_plain_expense(self, engine):
        txn, _ = engine.transactions.create(expense(20))
        engine.transactions.delete(txn.id)
        assert engine.state.cash_disbursements == []

    def test_delete_unknown(self, engine):
        with pytest.raises(TransactionNotFoundError):
            engine.transactions.delete("nope")

    def test_delete_removes_payment_records(self, engine, item):
        """Receipts from settlements go with the sale."""
        txn, _ = engine.transactions.create(
            sale(item.id, 2, 30, method=PaymentMethod.CREDIT)
        )
        entry = engine.journals.sale_for(txn.id)
        engine.payments.settle(entry.id, "sale", Decimal("10"))
        engine.payments.settle(entry.id, "sale")
        assert len(engine.state.cash_receipts) == 2

        engine.transactions.delete(txn.id)
        assert engine.state.cash_receipts == []
