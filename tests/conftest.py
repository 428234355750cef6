"""
Shared fixtures.

Ids and timestamps are deterministic so tests can assert on them.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from monimo.audit import AuditLogger
from monimo.ledger.audit_log import InventoryAuditLog
from monimo.ledger.inventory import InventoryLedger
from monimo.ledger.journals import JournalProjector
from monimo.ledger.payments import PaymentSubledger
from monimo.ledger.transactions import TransactionStore
from monimo.models.ledger import LedgerSnapshot
from monimo.models.transaction import PaymentMethod, TransactionDraft, TransactionType
from monimo.orchestrator import Bookkeeper
from monimo.services.storage import InMemoryLedgerStorage
from monimo.validation import TransactionValidator


class SequentialIds:
    """id-0001, id-0002, ..."""

    def __init__(self):
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"id-{self.count:04d}"


class StepClock:
    """Returns a fixed time; tests move it forward explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingAuditLogger(AuditLogger):
    """Keeps every event it logs."""

    def __init__(self):
        super().__init__("monimo.tests")
        self.events = []

    def log(self, event):
        self.events.append(event)
        super().log(event)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]


# =============================================================================
# DRAFT HELPERS
# =============================================================================

def sale(item_id, qty, amount, method=PaymentMethod.CASH, customer="", description="Sale"):
    return TransactionDraft(
        description=description,
        amount=Decimal(str(amount)),
        type=TransactionType.REVENUE,
        inv_id=item_id,
        inv_qty=qty,
        payment_method=method,
        customer=customer,
    )


def purchase(item_id, qty, amount, method=PaymentMethod.CASH, supplier="", description="Restock"):
    return TransactionDraft(
        description=description,
        amount=Decimal(str(amount)),
        type=TransactionType.EXPENSE,
        inv_id=item_id,
        inv_qty=qty,
        payment_method=method,
        supplier=supplier,
    )


def expense(amount, description="Electricity", method=PaymentMethod.CASH):
    return TransactionDraft(
        description=description,
        amount=Decimal(str(amount)),
        type=TransactionType.EXPENSE,
        payment_method=method,
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def clock():
    return StepClock(datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def keeper(storage, ids, clock, audit_logger):
    return Bookkeeper(storage, id_factory=ids, clock=clock, audit_logger=audit_logger)


@pytest.fixture
def widget(keeper):
    """Scenario item: Widget, unit price 10, 5 on hand."""
    return keeper.create_inventory_item("Widget", Decimal("10"), quantity=5)


class Engine:
    """Ledger components over one bare snapshot, without the facade."""

    def __init__(self, ids, clock):
        self.state = LedgerSnapshot.empty()
        self.audit_log = InventoryAuditLog(self.state, ids, clock)
        self.inventory = InventoryLedger(self.state, self.audit_log, ids)
        self.journals = JournalProjector(self.state, ids)
        self.transactions = TransactionStore(
            self.state,
            self.inventory,
            self.journals,
            TransactionValidator(max_amount=Decimal("1000000")),
            ids,
            clock,
        )
        self.payments = PaymentSubledger(self.state, self.journals, clock)


@pytest.fixture
def engine(ids, clock):
    return Engine(ids, clock)
