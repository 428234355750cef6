"""
Ledger Snapshot

The complete persisted state: every ledger plus display settings.
Storage backends load and save exactly one LedgerSnapshot at a time.
"""

from pydantic import BaseModel, ConfigDict, Field

from monimo.models.inventory import AuditLogEntry, InventoryItem
from monimo.models.journal import (
    CashDisbursement,
    CashReceipt,
    PurchaseEntry,
    SaleEntry,
)
from monimo.models.transaction import Transaction


CURRENT_SCHEMA_VERSION = 1

# Keys every persisted document must carry
LEDGER_KEYS = (
    "transactions",
    "inventory",
    "inventory_log",
    "purchases_journal",
    "sales_journal",
    "cash_receipts",
    "cash_disbursements",
    "settings",
)


class DisplaySettings(BaseModel):
    """Presentation preferences. Read-only for the engine."""
    model_config = ConfigDict(str_strip_whitespace=True)

    business_name: str = Field(
        default="Monimo",
        min_length=1,
        max_length=100,
    )
    theme: str = Field(
        default="light",
        pattern="^(light|dark)$",
    )
    accent: str = Field(
        default="blue",
        pattern="^(blue|green|lavender)$",
    )


class LedgerSnapshot(BaseModel):
    """
    All ledgers, committed together.

    Ordering conventions:
    - transactions, inventory: insertion order
    - inventory_log, journals, receipts, disbursements: newest first
    """

    schema_version: int = CURRENT_SCHEMA_VERSION

    transactions: list[Transaction] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)
    inventory_log: list[AuditLogEntry] = Field(default_factory=list)
    purchases_journal: list[PurchaseEntry] = Field(default_factory=list)
    sales_journal: list[SaleEntry] = Field(default_factory=list)
    cash_receipts: list[CashReceipt] = Field(default_factory=list)
    cash_disbursements: list[CashDisbursement] = Field(default_factory=list)
    settings: DisplaySettings = Field(default_factory=DisplaySettings)

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        return cls()
