"""
Data Models Package

This package contains all Pydantic models used by Monimo.
All data flowing through the ledger must conform to these schemas.
"""

from monimo.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from monimo.models.inventory import AuditAction, AuditLogEntry, InventoryItem
from monimo.models.journal import (
    CashDisbursement,
    CashReceipt,
    GeneralJournalLine,
    JournalEntry,
    JournalKind,
    PurchaseEntry,
    SaleEntry,
)
from monimo.models.ledger import (
    CURRENT_SCHEMA_VERSION,
    DisplaySettings,
    LedgerSnapshot,
)
from monimo.models.reports import LedgerSummary, OpenItem, PeriodSummary
from monimo.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from monimo.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Inventory models
    "AuditAction",
    "AuditLogEntry",
    "InventoryItem",
    # Journal models
    "CashDisbursement",
    "CashReceipt",
    "GeneralJournalLine",
    "JournalEntry",
    "JournalKind",
    "PurchaseEntry",
    "SaleEntry",
    # Ledger snapshot
    "CURRENT_SCHEMA_VERSION",
    "DisplaySettings",
    "LedgerSnapshot",
    # Reports
    "LedgerSummary",
    "OpenItem",
    "PeriodSummary",
    # Transactions
    "PaymentMethod",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
